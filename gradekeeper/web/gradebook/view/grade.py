"""View models for grade endpoints."""

from __future__ import annotations

import pydantic as p

from gradekeeper.model import CourseID, Grade, Submission


class ScoreRequest(p.BaseModel):
    """Set a score directly."""

    course_id: CourseID
    score: int | float
    modifier_name: str
    reason: str | None = None
    feedback: str | None = None
    operation_id: str | None = None


class RubricSelectionRequest(p.BaseModel):
    level_id: str
    comment: str | None = None


class RubricGradeRequest(p.BaseModel):
    """Score with the item's rubric; ``selections`` maps criterion ids to chosen levels."""

    course_id: CourseID
    selections: dict[str, RubricSelectionRequest]
    modifier_name: str
    reason: str | None = None
    feedback: str | None = None
    operation_id: str | None = None


class QuizMarksRequest(p.BaseModel):
    """Grade a quiz attempt; ``marks`` maps each hand-graded question id to the points awarded."""

    course_id: CourseID
    marks: dict[str, int | float]
    modifier_name: str
    reason: str | None = None
    feedback: str | None = None
    operation_id: str | None = None


class ResubmissionRequest(p.BaseModel):
    allow: bool


class SubmissionResponse(p.BaseModel):
    submission: Submission
    grade: Grade
