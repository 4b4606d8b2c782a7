import pydantic as p

from .base import BaseModel, FrozenModel, WithTimestamps
from .id import RubricID, UserID


class RubricLevel(BaseModel):
    id: str
    name: str
    points: int = p.Field(ge=0)


class RubricCriterion(BaseModel):
    id: str
    description: str
    long_description: str | None = None
    points: int = p.Field(ge=0)
    level_descriptions: dict[str, str] = {}


class Rubric(WithTimestamps):
    rubric_id: RubricID
    instructor_id: UserID
    title: str
    levels: list[RubricLevel] = []
    criteria: list[RubricCriterion] = []

    @property
    def max_points(self) -> int:
        return sum(c.points for c in self.criteria)


class RubricFeedbackEntry(FrozenModel):
    """Snapshot of one criterion's outcome, copied onto the grade."""

    level_id: str | None = None
    points: int
    comment: str | None = None


class RubricScore(FrozenModel):
    points: int
    max_points: int
    percentage: int
    breakdown: dict[str, RubricFeedbackEntry] = {}
