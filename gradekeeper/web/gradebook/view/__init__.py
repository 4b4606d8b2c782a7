"""View models for the gradebook web application."""

__all__ = [
    # Grade views
    "ScoreRequest",
    "RubricSelectionRequest",
    "RubricGradeRequest",
    "ResubmissionRequest",
    "SubmissionResponse",
    # Dispute views
    "DisputeCreateRequest",
    "DisputeResolveRequest",
    "DisputeResolutionResponse",
    "DisputeListResponse",
    # Course views
    "GradingSummaryResponse",
    "StudentGradesResponse",
    # Rubric views
    "RubricScoreRequest",
]

from .course import GradingSummaryResponse, StudentGradesResponse
from .dispute import DisputeCreateRequest, DisputeListResponse, DisputeResolutionResponse, DisputeResolveRequest
from .grade import ResubmissionRequest, RubricGradeRequest, RubricSelectionRequest, ScoreRequest, \
    SubmissionResponse
from .rubric import RubricScoreRequest
