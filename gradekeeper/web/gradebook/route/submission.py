"""Submission intake routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from gradekeeper.core import di
from gradekeeper.grading import GradingWorkflow, gradebook
from gradekeeper.model import AssignmentIntake, QuizIntake, SubmissionDetails, SubmissionID

from ..dependencies import get_workflow
from ..view.grade import SubmissionResponse

router = APIRouter(prefix="/api/submissions", tags=["submissions"])


@router.post("", operation_id="record_submission", status_code=status.HTTP_201_CREATED)
@di.inject
def record_submission(
    request: QuizIntake | AssignmentIntake,
    workflow: GradingWorkflow = Depends(get_workflow),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> SubmissionResponse:
    """Hand in a quiz or an assignment.

    Quizzes made only of auto-gradable questions come back graded; everything
    else comes back pending review.
    """
    submission, grade = workflow.record_submission(request, session=session)
    return SubmissionResponse(submission=submission, grade=grade)


@router.get("/{submission_id}", operation_id="get_submission_details")
@di.inject
def get_submission_details(
    submission_id: SubmissionID,
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> SubmissionDetails:
    """A submission with its grade, and the quiz questions or rubric to grade it against."""
    with session.begin():
        return gradebook.get_submission_details(submission_id, session=session)
