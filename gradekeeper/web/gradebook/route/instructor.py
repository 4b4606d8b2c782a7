"""Instructor overview routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from gradekeeper.core import di
from gradekeeper.grading import gradebook
from gradekeeper.model import UserID

from ..view.course import GradingSummaryResponse

router = APIRouter(prefix="/api/instructors", tags=["instructors"])


@router.get("/{instructor_id}/grading-summary", operation_id="get_grading_summary")
@di.inject
def get_grading_summary(
    instructor_id: UserID,
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> GradingSummaryResponse:
    """Submitted and graded counts for every gradable item the instructor teaches."""
    with session.begin():
        courses = gradebook.get_grading_summary(instructor_id, session=session)
    return GradingSummaryResponse(instructor_id=instructor_id, courses=courses)
