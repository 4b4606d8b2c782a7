"""Rubric routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from gradekeeper.core import di
from gradekeeper.grading import score_from_rubric, UnknownRubricError
from gradekeeper.model import RubricID, RubricScore
from gradekeeper.storage import rubric as rubric_storage

from ..view.rubric import RubricScoreRequest

router = APIRouter(prefix="/api/rubrics", tags=["rubrics"])


@router.post("/{rubric_id}/score", operation_id="preview_rubric_score")
@di.inject
def preview_rubric_score(
    rubric_id: RubricID,
    request: RubricScoreRequest,
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> RubricScore:
    """Score selections against a rubric without recording anything."""
    with session.begin():
        rubric = rubric_storage.get(rubric_id, session=session)
    if rubric is None:
        raise UnknownRubricError(f"no rubric {rubric_id}", rubric_id=rubric_id)
    return score_from_rubric(rubric, {k: v.model_dump() for k, v in request.selections.items()})
