from __future__ import annotations

import decimal
import typing as t

from gradekeeper.model import Rubric, RubricFeedbackEntry, RubricScore

from .errors import InvalidRubricSelectionError

# a rubric without criteria is scored out of 100
EmptyRubricMaxPoints: t.Final[int] = 100


class RubricSelection(t.TypedDict, total=False):
    level_id: t.Required[str]
    comment: str | None


def percentage(points: int, max_points: int) -> int:
    """``points / max_points`` as a whole percentage, halves rounded up."""
    if max_points <= 0:
        return 0
    ratio = decimal.Decimal(points * 100) / decimal.Decimal(max_points)
    return int(ratio.quantize(decimal.Decimal(1), rounding=decimal.ROUND_HALF_UP))


def score_from_rubric(rubric: Rubric, selections: t.Mapping[str, RubricSelection | str]) -> RubricScore:
    """Score a set of level selections against a rubric.

    ``selections`` maps criterion ids to the chosen level (either the level
    id, or a mapping with ``level_id`` and an optional ``comment``).
    Criteria without a selection score zero.

    Raises:
        InvalidRubricSelectionError: If a selection names an unknown criterion
            or level, or a level worth more than its criterion
    """
    criteria = {c.id: c for c in rubric.criteria}
    levels = {lv.id: lv for lv in rubric.levels}

    breakdown: dict[str, RubricFeedbackEntry] = {}
    for criterion_id, selection in selections.items():
        if isinstance(selection, str):
            level_id, comment = selection, None
        else:
            level_id, comment = selection["level_id"], selection.get("comment")

        criterion = criteria.get(criterion_id)
        if criterion is None:
            raise InvalidRubricSelectionError(
                f"rubric {rubric.rubric_id} has no criterion {criterion_id!r}",
                criterion_id=criterion_id,
            )
        level = levels.get(level_id)
        if level is None:
            raise InvalidRubricSelectionError(
                f"rubric {rubric.rubric_id} has no level {level_id!r}",
                criterion_id=criterion_id,
                level_id=level_id,
            )
        if level.points > criterion.points:
            raise InvalidRubricSelectionError(
                f"level {level_id!r} ({level.points} points) exceeds criterion {criterion_id!r} "
                f"({criterion.points} points)",
                criterion_id=criterion_id,
                level_id=level_id,
            )
        breakdown[criterion_id] = RubricFeedbackEntry(level_id=level_id, points=level.points, comment=comment)

    points = sum(entry.points for entry in breakdown.values())
    max_points = rubric.max_points if rubric.criteria else EmptyRubricMaxPoints
    return RubricScore(
        points=points,
        max_points=max_points,
        percentage=percentage(points, max_points),
        breakdown=breakdown,
    )
