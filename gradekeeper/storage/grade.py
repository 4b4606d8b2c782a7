"""Grade ledger.

One grade row per (student, content item), an append-only history of score
changes per grade, and the operation ids that have already been applied.
"""

from __future__ import annotations

import datetime
import typing as t

import sqlalchemy as sqla

from gradekeeper.core import di
from gradekeeper.lib import NotSet
from gradekeeper.model import AppliedOperation, ContentItemID, CourseID, DisputeID, Grade, GradeHistoryEntry, GradeHistoryEntryID, \
    GradeID, GradeStatus, RubricFeedbackEntry, SubmissionID, UserID

from . import Session
from .table import grade_history, grade_operations, grades


def _build(rows: t.Sequence[t.Mapping[str, t.Any]], session: Session) -> tuple[Grade, ...]:
    if not rows:
        return ()
    history = find_history(grade_ids=[row["grade_id"] for row in rows], session=session)
    by_grade: dict[GradeID, list[GradeHistoryEntry]] = {}
    for entry in history:
        by_grade.setdefault(entry.grade_id, []).append(entry)
    return tuple(Grade(**row, history=by_grade.get(row["grade_id"], [])) for row in rows)


def get(grade_id: GradeID, *, session: Session = di.Provide["storage.persistent.session"]) -> Grade | None:
    stmt = sqla.select(grades.__table__).where(grades.grade_id == grade_id)
    row = session.execute(stmt).mappings().one_or_none()
    return _build([row], session)[0] if row else None


def get_for(
    *,
    student_id: UserID,
    content_item_id: ContentItemID,
    session: Session = di.Provide["storage.persistent.session"],
) -> Grade | None:
    stmt = sqla.select(grades.__table__).where(
        grades.student_id == student_id,
        grades.content_item_id == content_item_id,
    )
    row = session.execute(stmt).mappings().one_or_none()
    return _build([row], session)[0] if row else None


def find(
    *,
    course_id: CourseID | None = None,
    student_id: UserID | None = None,
    content_item_id: ContentItemID | None = None,
    status: GradeStatus | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[Grade, ...]:
    stmt = sqla.select(grades.__table__).order_by(grades.create_time, grades.grade_id)
    if course_id is not None:
        stmt = stmt.where(grades.course_id == course_id)
    if student_id is not None:
        stmt = stmt.where(grades.student_id == student_id)
    if content_item_id is not None:
        stmt = stmt.where(grades.content_item_id == content_item_id)
    if status is not None:
        stmt = stmt.where(grades.status == status)
    rows = session.execute(stmt).mappings().all()
    return _build(rows, session)


def create(
    *,
    student_id: UserID,
    course_id: CourseID,
    content_item_id: ContentItemID,
    status: GradeStatus,
    timestamp: datetime.datetime,
    score: int | None = None,
    submission_id: SubmissionID | None = None,
    feedback: str | None = None,
    rubric_feedback: t.Mapping[str, RubricFeedbackEntry] | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> Grade:
    """Create the grade of a student for a content item.

    Raises:
        sqlalchemy.exc.IntegrityError: If the student already has a grade for the item
    """
    grade_id = GradeID()
    session.execute(
        sqla.insert(grades).values(
            grade_id=grade_id,
            student_id=student_id,
            course_id=course_id,
            content_item_id=content_item_id,
            status=status,
            score=score,
            submission_id=submission_id,
            feedback=feedback,
            rubric_feedback=_dump_feedback(rubric_feedback),
            create_time=timestamp,
            update_time=timestamp,
        )
    )
    session.flush()
    result = get(grade_id, session=session)
    assert result is not None
    return result


def update(
    grade_id: GradeID,
    *,
    expected_revision: int,
    timestamp: datetime.datetime,
    score: int | None | NotSet = NotSet(),
    status: GradeStatus | NotSet = NotSet(),
    submission_id: SubmissionID | None | NotSet = NotSet(),
    feedback: str | None | NotSet = NotSet(),
    rubric_feedback: t.Mapping[str, RubricFeedbackEntry] | None | NotSet = NotSet(),
    is_disputed: bool | NotSet = NotSet(),
    dispute_id: DisputeID | None | NotSet = NotSet(),
    can_resubmit: bool | NotSet = NotSet(),
    session: Session = di.Provide["storage.persistent.session"],
) -> int:
    """Compare-and-swap update of a grade.

    The row is only written if its revision is still ``expected_revision``;
    the revision is then incremented and returned.

    Raises:
        KeyError: If no grade has grade_id at expected_revision
    """
    values: dict[str, t.Any] = {"update_time": timestamp, "revision": expected_revision + 1}
    if not isinstance(score, NotSet):
        values["score"] = score
    if not isinstance(status, NotSet):
        values["status"] = status
    if not isinstance(submission_id, NotSet):
        values["submission_id"] = submission_id
    if not isinstance(feedback, NotSet):
        values["feedback"] = feedback
    if not isinstance(rubric_feedback, NotSet):
        values["rubric_feedback"] = _dump_feedback(rubric_feedback)
    if not isinstance(is_disputed, NotSet):
        values["is_disputed"] = is_disputed
    if not isinstance(dispute_id, NotSet):
        values["dispute_id"] = dispute_id
    if not isinstance(can_resubmit, NotSet):
        values["can_resubmit"] = can_resubmit

    stmt = (
        sqla
        .update(grades)
        .where(grades.grade_id == grade_id, grades.revision == expected_revision)
        .values(**values)
    )
    result = session.execute(stmt)
    if result.rowcount == 0:  # pyright: ignore[reportAttributeAccessIssue]
        raise KeyError(f"Grade {grade_id} at revision {expected_revision} not found")
    session.flush()
    return expected_revision + 1


def append_history(
    *,
    grade_id: GradeID,
    modifier_name: str,
    old_score: int | None,
    new_score: int,
    reason: str,
    timestamp: datetime.datetime,
    session: Session = di.Provide["storage.persistent.session"],
) -> GradeHistoryEntry:
    """Append an entry to a grade's history; there is no way to change or remove one."""
    stmt = sqla.select(sqla.func.coalesce(sqla.func.max(grade_history.sequence), 0)).where(
        grade_history.grade_id == grade_id
    )
    sequence = session.execute(stmt).scalar_one() + 1
    entry = GradeHistoryEntry(
        entry_id=GradeHistoryEntryID(),
        grade_id=grade_id,
        sequence=sequence,
        timestamp=timestamp,
        modifier_name=modifier_name,
        old_score=old_score,
        new_score=new_score,
        reason=reason,
    )
    session.execute(sqla.insert(grade_history).values(**entry.model_dump()))
    session.flush()
    return entry


def find_history(
    *,
    grade_ids: t.Collection[GradeID],
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[GradeHistoryEntry, ...]:
    """History entries of the given grades, oldest first within each grade."""
    stmt = (
        sqla
        .select(grade_history.__table__)
        .where(grade_history.grade_id.in_(list(grade_ids)))
        .order_by(grade_history.grade_id, grade_history.sequence)
    )
    rows = session.execute(stmt).mappings().all()
    return tuple(GradeHistoryEntry(**row) for row in rows)


def find_operation(
    operation_id: str,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> AppliedOperation | None:
    """The earlier application of an operation id, if any."""
    stmt = sqla.select(grade_operations.__table__).where(grade_operations.operation_id == operation_id)
    row = session.execute(stmt).mappings().one_or_none()
    return AppliedOperation(**row) if row else None


def record_operation(
    *,
    operation_id: str,
    grade_id: GradeID,
    kind: str,
    target: str,
    timestamp: datetime.datetime,
    session: Session = di.Provide["storage.persistent.session"],
) -> None:
    session.execute(
        sqla.insert(grade_operations).values(
            operation_id=operation_id, grade_id=grade_id, kind=kind, target=target, create_time=timestamp
        )
    )
    session.flush()


def _dump_feedback(feedback: t.Mapping[str, RubricFeedbackEntry] | None) -> dict[str, t.Any] | None:
    if feedback is None:
        return None
    return {k: v.model_dump(mode="json") for k, v in feedback.items()}
