"""View models for course and gradebook endpoints."""

from __future__ import annotations

import pydantic as p

from gradekeeper.model import CourseGradingSummary, CourseID, StudentGradeLine, UserID


class GradingSummaryResponse(p.BaseModel):
    instructor_id: UserID
    courses: list[CourseGradingSummary]


class StudentGradesResponse(p.BaseModel):
    student_id: UserID
    course_id: CourseID
    grades: list[StudentGradeLine]
