import datetime

from .base import BaseModel
from .course import ContentType
from .grade import Grade, GradeStatus
from .id import ContentItemID, CourseID, SubmissionID, UserID
from .question import Question
from .rubric import Rubric
from .submission import Submission
from .user import UserRef


class ContentItemRef(BaseModel):
    content_item_id: ContentItemID
    title: str
    type: ContentType
    due_date: datetime.datetime | None = None


class GradeMatrixRow(BaseModel):
    student_id: UserID
    student_name: str
    cells: dict[ContentItemID, Grade | None]


class GradeMatrix(BaseModel):
    course_id: CourseID
    is_locked: bool
    gradable_items: list[ContentItemRef]
    rows: list[GradeMatrixRow]


class GradableItemSummary(ContentItemRef):
    total_enrolled: int
    submitted_count: int
    graded_count: int
    submission_rate: float


class CourseGradingSummary(BaseModel):
    course_id: CourseID
    course_title: str
    is_locked: bool
    items: list[GradableItemSummary]


class StudentSubmissionDetails(BaseModel):
    student: UserRef
    submission: Submission | None = None
    grade: Grade | None = None


class ItemQueue(BaseModel):
    """Enrolled students of one gradable item, split for the grading triage view."""

    item: ContentItemRef
    course_id: CourseID
    not_submitted: list[StudentSubmissionDetails] = []
    needs_grading: list[StudentSubmissionDetails] = []
    graded: list[StudentSubmissionDetails] = []


class StudentGradeLine(ContentItemRef):
    score: int | None = None
    status: GradeStatus | None = None
    is_disputed: bool = False
    can_resubmit: bool = False
    submission_id: SubmissionID | None = None


class SubmissionDetails(BaseModel):
    """A submission with what an instructor needs to grade it: the quiz questions or the rubric."""

    submission: Submission
    grade: Grade | None = None
    questions: list[Question] = []
    rubric: Rubric | None = None
