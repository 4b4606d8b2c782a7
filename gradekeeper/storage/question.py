from __future__ import annotations

import typing as t

import sqlalchemy as sqla

from gradekeeper.core import di
from gradekeeper.model import Question, QuestionAdapter, QuestionID, UserID

from . import Session
from .table import questions


def _from_row(row: t.Mapping[str, t.Any]) -> Question:
    return QuestionAdapter.validate_python({
        **row["body"],
        "question_id": row["question_id"],
        "instructor_id": row["instructor_id"],
    })


def get(question_id: QuestionID, *, session: Session = di.Provide["storage.persistent.session"]) -> Question | None:
    stmt = sqla.select(questions.__table__).where(questions.question_id == question_id)
    row = session.execute(stmt).mappings().one_or_none()
    return _from_row(row) if row else None


def find(
    *,
    question_ids: t.Sequence[QuestionID],
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[Question, ...]:
    """Questions in the order of ``question_ids``; unknown ids are skipped."""
    stmt = sqla.select(questions.__table__).where(questions.question_id.in_(list(question_ids)))
    by_id = {row["question_id"]: _from_row(row) for row in session.execute(stmt).mappings().all()}
    return tuple(by_id[qid] for qid in question_ids if qid in by_id)


def create(
    *,
    instructor_id: UserID,
    body: t.Mapping[str, t.Any],
    session: Session = di.Provide["storage.persistent.session"],
) -> Question:
    """Create a question from its variant fields, e.g. ``{"type": "true-false", "stem": ..., "correct_answer": True}``.

    Raises:
        pydantic.ValidationError: If ``body`` is not a valid question
    """
    question_id = QuestionID()
    question = QuestionAdapter.validate_python({**body, "question_id": question_id, "instructor_id": instructor_id})
    stored = question.model_dump(mode="json", exclude={"question_id", "instructor_id"})
    session.execute(
        sqla.insert(questions).values(question_id=question_id, instructor_id=instructor_id, body=stored)
    )
    session.flush()
    return question
