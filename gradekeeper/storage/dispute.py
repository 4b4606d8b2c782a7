from __future__ import annotations

import datetime
import typing as t

import sqlalchemy as sqla

from gradekeeper.core import di
from gradekeeper.lib import NotSet
from gradekeeper.model import CourseID, DisputeID, DisputeStatus, GradeDispute, GradeID, UserID

from . import Session
from .table import grade_disputes, grades


def get(dispute_id: DisputeID, *, session: Session = di.Provide["storage.persistent.session"]) -> GradeDispute | None:
    stmt = sqla.select(grade_disputes.__table__).where(grade_disputes.dispute_id == dispute_id)
    row = session.execute(stmt).mappings().one_or_none()
    return GradeDispute(**row) if row else None


def find(
    *,
    grade_id: GradeID | None = None,
    course_id: CourseID | None = None,
    student_id: UserID | None = None,
    status: DisputeStatus | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[GradeDispute, ...]:
    """Disputes oldest first."""
    stmt = sqla.select(grade_disputes.__table__).order_by(grade_disputes.create_time, grade_disputes.dispute_id)
    if grade_id is not None:
        stmt = stmt.where(grade_disputes.grade_id == grade_id)
    if course_id is not None:
        stmt = stmt.join(grades, grades.grade_id == grade_disputes.grade_id).where(grades.course_id == course_id)
    if student_id is not None:
        stmt = stmt.where(grade_disputes.student_id == student_id)
    if status is not None:
        stmt = stmt.where(grade_disputes.status == status)
    rows = session.execute(stmt).mappings().all()
    return tuple(GradeDispute(**row) for row in rows)


def create(
    *,
    grade_id: GradeID,
    student_id: UserID,
    student_reason: str,
    create_time: datetime.datetime,
    session: Session = di.Provide["storage.persistent.session"],
) -> GradeDispute:
    dispute_id = DisputeID()
    session.execute(
        sqla.insert(grade_disputes).values(
            dispute_id=dispute_id,
            grade_id=grade_id,
            student_id=student_id,
            student_reason=student_reason,
            status=DisputeStatus.Pending,
            create_time=create_time,
        )
    )
    session.flush()
    result = get(dispute_id, session=session)
    assert result is not None
    return result


def update(
    dispute_id: DisputeID,
    *,
    status: DisputeStatus | NotSet = NotSet(),
    resolution_comment: str | None | NotSet = NotSet(),
    resolved_score: int | None | NotSet = NotSet(),
    resolver_name: str | None | NotSet = NotSet(),
    resolve_time: datetime.datetime | None | NotSet = NotSet(),
    session: Session = di.Provide["storage.persistent.session"],
) -> None:
    """Update a dispute.

    Raises:
        KeyError: If dispute_id does not correspond to a dispute
    """
    values: dict[str, t.Any] = {}
    if not isinstance(status, NotSet):
        values["status"] = status
    if not isinstance(resolution_comment, NotSet):
        values["resolution_comment"] = resolution_comment
    if not isinstance(resolved_score, NotSet):
        values["resolved_score"] = resolved_score
    if not isinstance(resolver_name, NotSet):
        values["resolver_name"] = resolver_name
    if not isinstance(resolve_time, NotSet):
        values["resolve_time"] = resolve_time

    if values:
        stmt = sqla.update(grade_disputes).where(grade_disputes.dispute_id == dispute_id).values(**values)
    else:
        # no-op update to verify the dispute exists
        stmt = (
            sqla
            .update(grade_disputes)
            .where(grade_disputes.dispute_id == dispute_id)
            .values(dispute_id=dispute_id)
        )

    result = session.execute(stmt)
    if result.rowcount == 0:  # pyright: ignore[reportAttributeAccessIssue]
        raise KeyError(f"GradeDispute {dispute_id} not found")
    session.flush()
