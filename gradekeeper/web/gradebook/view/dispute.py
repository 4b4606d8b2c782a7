"""View models for grade dispute endpoints."""

from __future__ import annotations

import pydantic as p

from gradekeeper.model import DisputeDecision, Grade, GradeDispute, GradeID, UserID


class DisputeCreateRequest(p.BaseModel):
    grade_id: GradeID
    student_id: UserID
    reason: str = p.Field(min_length=1)


class DisputeResolveRequest(p.BaseModel):
    """An instructor's decision; ``new_score`` is required when accepting."""

    decision: DisputeDecision
    comment: str
    resolver_name: str
    new_score: int | float | None = None
    operation_id: str | None = None


class DisputeResolutionResponse(p.BaseModel):
    grade: Grade
    dispute: GradeDispute


class DisputeListResponse(p.BaseModel):
    disputes: list[GradeDispute]
    total: int
