import datetime
import enum

from .base import WithCtime
from .id import DisputeID, GradeID, UserID


class DisputeStatus(enum.Enum):
    Pending = "pending"
    Accepted = "accepted"
    Rejected = "rejected"


class DisputeDecision(enum.Enum):
    Accept = "accept"
    Reject = "reject"


class GradeDispute(WithCtime):
    dispute_id: DisputeID
    grade_id: GradeID
    student_id: UserID
    student_reason: str
    status: DisputeStatus = DisputeStatus.Pending

    resolution_comment: str | None = None
    resolved_score: int | None = None
    resolver_name: str | None = None
    resolve_time: datetime.datetime | None = None

    @property
    def is_open(self) -> bool:
        return self.status is DisputeStatus.Pending
