"""Grade ledger routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from gradekeeper.core import di
from gradekeeper.grading import GradingWorkflow
from gradekeeper.model import ContentItemID, Grade, UserID

from ..dependencies import get_workflow
from ..view.grade import QuizMarksRequest, ResubmissionRequest, RubricGradeRequest, ScoreRequest

router = APIRouter(prefix="/api/grades", tags=["grades"])


@router.get("/{student_id}/{content_item_id}", operation_id="get_grade")
@di.inject
def get_grade(
    student_id: UserID,
    content_item_id: ContentItemID,
    workflow: GradingWorkflow = Depends(get_workflow),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Grade:
    """Get a student's grade for a content item, with its full history."""
    grade = workflow.get_grade(student_id=student_id, content_item_id=content_item_id, session=session)
    if grade is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Grade not found")
    return grade


@router.put("/{student_id}/{content_item_id}", operation_id="upsert_score")
@di.inject
def upsert_score(
    student_id: UserID,
    content_item_id: ContentItemID,
    request: ScoreRequest,
    workflow: GradingWorkflow = Depends(get_workflow),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Grade:
    """Set a student's score directly. Repeating an ``operation_id`` is a no-op."""
    return workflow.upsert_score(
        student_id=student_id,
        course_id=request.course_id,
        content_item_id=content_item_id,
        score=request.score,
        reason=request.reason,
        modifier_name=request.modifier_name,
        feedback=request.feedback,
        operation_id=request.operation_id,
        session=session,
    )


@router.post("/{student_id}/{content_item_id}/rubric", operation_id="grade_with_rubric")
@di.inject
def grade_with_rubric(
    student_id: UserID,
    content_item_id: ContentItemID,
    request: RubricGradeRequest,
    workflow: GradingWorkflow = Depends(get_workflow),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Grade:
    """Grade with the content item's rubric."""
    return workflow.grade_with_rubric(
        student_id=student_id,
        course_id=request.course_id,
        content_item_id=content_item_id,
        selections={k: v.model_dump() for k, v in request.selections.items()},
        modifier_name=request.modifier_name,
        reason=request.reason,
        feedback=request.feedback,
        operation_id=request.operation_id,
        session=session,
    )


@router.post("/{student_id}/{content_item_id}/quiz", operation_id="grade_quiz_manually")
@di.inject
def grade_quiz_manually(
    student_id: UserID,
    content_item_id: ContentItemID,
    request: QuizMarksRequest,
    workflow: GradingWorkflow = Depends(get_workflow),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Grade:
    """Grade the latest quiz attempt, marking the questions that need an instructor."""
    return workflow.grade_quiz_manually(
        student_id=student_id,
        course_id=request.course_id,
        content_item_id=content_item_id,
        marks=request.marks,  # type: ignore[arg-type]
        modifier_name=request.modifier_name,
        reason=request.reason,
        feedback=request.feedback,
        operation_id=request.operation_id,
        session=session,
    )


@router.put("/{student_id}/{content_item_id}/resubmission", operation_id="toggle_resubmission")
@di.inject
def toggle_resubmission(
    student_id: UserID,
    content_item_id: ContentItemID,
    request: ResubmissionRequest,
    workflow: GradingWorkflow = Depends(get_workflow),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Grade:
    return workflow.toggle_resubmission(
        student_id=student_id,
        content_item_id=content_item_id,
        allow=request.allow,
        session=session,
    )
