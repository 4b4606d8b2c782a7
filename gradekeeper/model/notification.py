import datetime
import enum
import typing as t

import pydantic as p

from .base import FrozenModel
from .id import UserID


class NotificationType(enum.Enum):
    SubmissionReceived = "submission_received"
    GradePosted = "grade_posted"
    DisputeFiled = "dispute_filed"
    DisputeResolved = "dispute_resolved"
    GradebookFinalized = "gradebook_finalized"


class Notification(FrozenModel):
    user_id: UserID
    type: NotificationType
    payload: dict[str, t.Any] = p.Field(default_factory=dict)
    create_time: datetime.datetime
