"""Route aggregation for the gradebook web application."""

from fastapi import APIRouter

from . import content_item, course, dispute, grade, instructor, rubric, student, submission

router = APIRouter()
router.include_router(submission.router)
router.include_router(grade.router)
router.include_router(dispute.router)
router.include_router(course.router)
router.include_router(content_item.router)
router.include_router(instructor.router)
router.include_router(student.router)
router.include_router(rubric.router)
