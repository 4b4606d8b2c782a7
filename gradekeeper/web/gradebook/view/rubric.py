"""View models for rubric endpoints."""

from __future__ import annotations

import pydantic as p

from .grade import RubricSelectionRequest


class RubricScoreRequest(p.BaseModel):
    """Preview the score a set of selections would produce; nothing is stored."""

    selections: dict[str, RubricSelectionRequest]
