"""Course gradebook routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from gradekeeper.core import di
from gradekeeper.grading import GradingWorkflow, UnknownCourseError
from gradekeeper.grading import gradebook
from gradekeeper.model import Course, CourseID, DisputeStatus, GradeMatrix
from gradekeeper.storage import course as course_storage
from gradekeeper.storage import dispute as dispute_storage

from ..dependencies import get_workflow
from ..view.dispute import DisputeListResponse

router = APIRouter(prefix="/api/courses", tags=["courses"])


@router.get("/{course_id}/gradebook", operation_id="get_course_grade_matrix")
@di.inject
def get_course_grade_matrix(
    course_id: CourseID,
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> GradeMatrix:
    """Every enrolled student against every gradable item."""
    with session.begin():
        return gradebook.get_course_grade_matrix(course_id, session=session)


@router.get("/{course_id}/disputes", operation_id="list_course_disputes")
@di.inject
def list_course_disputes(
    course_id: CourseID,
    status: DisputeStatus | None = None,
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> DisputeListResponse:
    """List disputes on the course's grades, optionally only those with ``status``."""
    with session.begin():
        if course_storage.get(course_id, session=session) is None:
            raise UnknownCourseError(f"no course {course_id}", course_id=course_id)
        disputes = dispute_storage.find(course_id=course_id, status=status, session=session)
    return DisputeListResponse(disputes=list(disputes), total=len(disputes))


@router.post("/{course_id}/finalize", operation_id="finalize_course")
@di.inject
def finalize_course(
    course_id: CourseID,
    workflow: GradingWorkflow = Depends(get_workflow),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Course:
    """Lock the course gradebook. Every later grade change is refused."""
    return workflow.finalize_course(course_id=course_id, session=session)
