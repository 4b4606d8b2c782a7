"""Grading queue routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from gradekeeper.core import di
from gradekeeper.grading import gradebook
from gradekeeper.model import ContentItemID, ItemQueue

router = APIRouter(prefix="/api/content-items", tags=["content items"])


@router.get("/{content_item_id}/queue", operation_id="get_item_queue")
@di.inject
def get_item_queue(
    content_item_id: ContentItemID,
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> ItemQueue:
    """Enrolled students split into not submitted, needs grading and graded."""
    with session.begin():
        return gradebook.get_item_queue(content_item_id, session=session)
