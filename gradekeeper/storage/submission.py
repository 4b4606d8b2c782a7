"""Submission store.

Submissions are immutable: there is deliberately no update or delete here. A
resubmission is a new row with its own id.
"""

from __future__ import annotations

import typing as t

import sqlalchemy as sqla

from gradekeeper.core import di
from gradekeeper.model import AssignmentSubmission, ContentItemID, CourseID, QuizSubmission, Submission, \
    SubmissionAdapter, SubmissionID, SubmissionType, UserID

from . import Session
from .table import submissions


def _from_row(row: sqla.RowMapping) -> Submission:
    return SubmissionAdapter.validate_python({**row, "type": row["type"].value})


def get(
    submission_id: SubmissionID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> Submission | None:
    stmt = sqla.select(submissions.__table__).where(submissions.submission_id == submission_id)
    row = session.execute(stmt).mappings().one_or_none()
    return _from_row(row) if row else None


def find(
    *,
    student_id: UserID | None = None,
    course_id: CourseID | None = None,
    content_item_id: ContentItemID | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[Submission, ...]:
    """Submissions oldest first."""
    stmt = sqla.select(submissions.__table__).order_by(submissions.submitted_at, submissions.submission_id)
    if student_id is not None:
        stmt = stmt.where(submissions.student_id == student_id)
    if course_id is not None:
        stmt = stmt.where(submissions.course_id == course_id)
    if content_item_id is not None:
        stmt = stmt.where(submissions.content_item_id == content_item_id)
    rows = session.execute(stmt).mappings().all()
    return tuple(_from_row(row) for row in rows)


def latest(
    *,
    student_id: UserID,
    content_item_id: ContentItemID,
    session: Session = di.Provide["storage.persistent.session"],
) -> Submission | None:
    found = find(student_id=student_id, content_item_id=content_item_id, session=session)
    return found[-1] if found else None


def count(
    *,
    student_id: UserID,
    content_item_id: ContentItemID,
    session: Session = di.Provide["storage.persistent.session"],
) -> int:
    stmt = (
        sqla
        .select(sqla.func.count())
        .select_from(submissions)
        .where(submissions.student_id == student_id, submissions.content_item_id == content_item_id)
    )
    return session.execute(stmt).scalar_one()


def create(submission: Submission, *, session: Session = di.Provide["storage.persistent.session"]) -> Submission:
    values: dict[str, t.Any] = {
        "submission_id": submission.submission_id,
        "type": SubmissionType(submission.type),
        "student_id": submission.student_id,
        "course_id": submission.course_id,
        "content_item_id": submission.content_item_id,
        "submitted_at": submission.submitted_at,
    }
    match submission:
        case QuizSubmission(attempt_number=attempt_number, answers=answers):
            values.update(attempt_number=attempt_number, answers=dict(answers))
        case AssignmentSubmission(file=file, text_content=text_content):
            values.update(file=file.model_dump(mode="json") if file else None, text_content=text_content)

    session.execute(sqla.insert(submissions).values(**values))
    session.flush()
    return submission
