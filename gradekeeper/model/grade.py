import datetime
import enum
import typing as t

import pydantic as p

from .base import FrozenModel, WithTimestamps
from .id import ContentItemID, CourseID, DisputeID, GradeHistoryEntryID, GradeID, SubmissionID, UserID
from .rubric import RubricFeedbackEntry

MinScore: t.Final[int] = 0
MaxScore: t.Final[int] = 100


class GradeStatus(enum.Enum):
    PendingReview = "pending review"
    Graded = "graded"


class GradeHistoryEntry(FrozenModel):
    entry_id: GradeHistoryEntryID
    grade_id: GradeID
    sequence: int
    timestamp: datetime.datetime
    modifier_name: str
    old_score: int | None = None
    new_score: int
    reason: str


class Grade(WithTimestamps):
    grade_id: GradeID
    student_id: UserID
    course_id: CourseID
    content_item_id: ContentItemID

    score: int | None = None
    status: GradeStatus = GradeStatus.PendingReview
    submission_id: SubmissionID | None = None
    feedback: str | None = None
    rubric_feedback: dict[str, RubricFeedbackEntry] | None = None

    is_disputed: bool = False
    dispute_id: DisputeID | None = None
    can_resubmit: bool = False
    revision: int = 0

    history: list[GradeHistoryEntry] = []

    @p.model_validator(mode="after")
    def _check_score_status(self) -> t.Self:
        match self.status:
            case GradeStatus.PendingReview:
                if self.score is not None:
                    raise ValueError("a grade pending review has no score")
            case GradeStatus.Graded:
                if self.score is None or not (MinScore <= self.score <= MaxScore):
                    raise ValueError(f"a graded grade needs a score in [{MinScore}, {MaxScore}]")
        return self


class AppliedOperation(FrozenModel):
    """A client operation id already applied, and what it was applied to.

    ``target`` names what the client addressed: ``<student_id>/<content_item_id>``
    for scoring, the dispute id for a resolution.
    """

    operation_id: str
    grade_id: GradeID
    kind: str
    target: str
    create_time: datetime.datetime
