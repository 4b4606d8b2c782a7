"""Student grade routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from gradekeeper.core import di
from gradekeeper.grading import gradebook
from gradekeeper.model import CourseID, UserID

from ..view.course import StudentGradesResponse

router = APIRouter(prefix="/api/students", tags=["students"])


@router.get("/{student_id}/courses/{course_id}/grades", operation_id="get_student_grades")
@di.inject
def get_student_grades(
    student_id: UserID,
    course_id: CourseID,
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> StudentGradesResponse:
    with session.begin():
        grades = gradebook.get_student_grades(student_id, course_id, session=session)
    return StudentGradesResponse(student_id=student_id, course_id=course_id, grades=grades)
