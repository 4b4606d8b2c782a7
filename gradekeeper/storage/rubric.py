from __future__ import annotations

import typing as t

import sqlalchemy as sqla

from gradekeeper.core import di
from gradekeeper.core.provider import utcnow
from gradekeeper.lib import NotSet
from gradekeeper.model import Rubric, RubricCriterion, RubricID, RubricLevel, UserID

from . import Session
from .table import rubrics


def get(rubric_id: RubricID, *, session: Session = di.Provide["storage.persistent.session"]) -> Rubric | None:
    stmt = sqla.select(rubrics.__table__).where(rubrics.rubric_id == rubric_id)
    row = session.execute(stmt).mappings().one_or_none()
    return Rubric(**row) if row else None


def find(
    *,
    instructor_id: UserID | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[Rubric, ...]:
    stmt = sqla.select(rubrics.__table__).order_by(rubrics.title)
    if instructor_id is not None:
        stmt = stmt.where(rubrics.instructor_id == instructor_id)
    rows = session.execute(stmt).mappings().all()
    return tuple(Rubric(**row) for row in rows)


def create(
    *,
    instructor_id: UserID,
    title: str,
    levels: t.Sequence[RubricLevel],
    criteria: t.Sequence[RubricCriterion],
    session: Session = di.Provide["storage.persistent.session"],
) -> Rubric:
    rubric_id = RubricID()
    now = utcnow()
    session.execute(
        sqla.insert(rubrics).values(
            rubric_id=rubric_id,
            instructor_id=instructor_id,
            title=title,
            levels=[lv.model_dump(mode="json") for lv in levels],
            criteria=[c.model_dump(mode="json") for c in criteria],
            create_time=now,
            update_time=now,
        )
    )
    session.flush()
    result = get(rubric_id, session=session)
    assert result is not None
    return result


def update(
    rubric_id: RubricID,
    *,
    title: str | NotSet = NotSet(),
    levels: t.Sequence[RubricLevel] | NotSet = NotSet(),
    criteria: t.Sequence[RubricCriterion] | NotSet = NotSet(),
    session: Session = di.Provide["storage.persistent.session"],
) -> None:
    """Update a rubric.

    Grades keep the breakdown they were scored with; editing a rubric never
    changes an existing grade.

    Raises:
        KeyError: If rubric_id does not correspond to a rubric
    """
    values: dict[str, t.Any] = {"update_time": utcnow()}
    if not isinstance(title, NotSet):
        values["title"] = title
    if not isinstance(levels, NotSet):
        values["levels"] = [lv.model_dump(mode="json") for lv in levels]
    if not isinstance(criteria, NotSet):
        values["criteria"] = [c.model_dump(mode="json") for c in criteria]

    stmt = sqla.update(rubrics).where(rubrics.rubric_id == rubric_id).values(**values)
    result = session.execute(stmt)
    if result.rowcount == 0:  # pyright: ignore[reportAttributeAccessIssue]
        raise KeyError(f"Rubric {rubric_id} not found")
    session.flush()
