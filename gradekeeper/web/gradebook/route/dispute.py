"""Grade dispute routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from gradekeeper.core import di
from gradekeeper.grading import GradingWorkflow
from gradekeeper.model import DisputeDecision, DisputeID, GradeDispute
from gradekeeper.storage import dispute as dispute_storage

from ..dependencies import get_workflow
from ..view.dispute import DisputeCreateRequest, DisputeResolutionResponse, DisputeResolveRequest

router = APIRouter(prefix="/api/disputes", tags=["disputes"])


@router.post("", operation_id="file_dispute", status_code=status.HTTP_201_CREATED)
@di.inject
def file_dispute(
    request: DisputeCreateRequest,
    workflow: GradingWorkflow = Depends(get_workflow),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> GradeDispute:
    """Dispute a graded grade. Only one dispute per grade may be pending."""
    return workflow.file_dispute(
        grade_id=request.grade_id,
        student_id=request.student_id,
        reason=request.reason,
        session=session,
    )


@router.get("/{dispute_id}", operation_id="get_dispute")
@di.inject
def get_dispute(
    dispute_id: DisputeID,
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> GradeDispute:
    with session.begin():
        dispute = dispute_storage.get(dispute_id, session=session)
    if dispute is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Dispute not found")
    return dispute


@router.post("/{dispute_id}/resolve", operation_id="resolve_dispute")
@di.inject
def resolve_dispute(
    dispute_id: DisputeID,
    request: DisputeResolveRequest,
    workflow: GradingWorkflow = Depends(get_workflow),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> DisputeResolutionResponse:
    """Accept (with a new score) or reject a pending dispute."""
    grade, dispute = workflow.resolve_dispute(
        dispute_id=dispute_id,
        accept=request.decision is DisputeDecision.Accept,
        comment=request.comment,
        resolver_name=request.resolver_name,
        new_score=request.new_score,
        operation_id=request.operation_id,
        session=session,
    )
    return DisputeResolutionResponse(grade=grade, dispute=dispute)
