import datetime
import enum
import typing as t

import pydantic as p

from .base import FrozenModel
from .id import ContentItemID, CourseID, SubmissionID, UserID
from .question import AnswerValue


# stored in the submissions table; the union tags below are its values
class SubmissionType(enum.Enum):
    Quiz = "quiz"
    Assignment = "assignment"


class SubmittedFile(FrozenModel):
    name: str
    size: int = p.Field(ge=0)
    url: str


class BaseSubmission(FrozenModel):
    submission_id: SubmissionID
    student_id: UserID
    course_id: CourseID
    content_item_id: ContentItemID
    submitted_at: datetime.datetime


class QuizSubmission(BaseSubmission):
    type: t.Literal["quiz"] = "quiz"
    attempt_number: int = p.Field(default=1, ge=1)
    answers: dict[str, AnswerValue] = {}


class AssignmentSubmission(BaseSubmission):
    type: t.Literal["assignment"] = "assignment"
    file: SubmittedFile | None = None
    text_content: str | None = None


Submission = t.Annotated[QuizSubmission | AssignmentSubmission, p.Field(discriminator="type")]

SubmissionAdapter: p.TypeAdapter[Submission] = p.TypeAdapter(Submission)


class QuizIntake(FrozenModel):
    """What a quiz taker hands over; ids and timestamps are assigned on receipt."""

    type: t.Literal["quiz"] = "quiz"
    student_id: UserID
    course_id: CourseID
    content_item_id: ContentItemID
    answers: dict[str, AnswerValue] = {}


class AssignmentIntake(FrozenModel):
    type: t.Literal["assignment"] = "assignment"
    student_id: UserID
    course_id: CourseID
    content_item_id: ContentItemID
    file: SubmittedFile | None = None
    text_content: str | None = None

    @p.model_validator(mode="after")
    def _require_content(self) -> t.Self:
        if self.file is None and not self.text_content:
            raise ValueError("an assignment submission needs a file or text content")
        return self


SubmissionIntake = t.Annotated[QuizIntake | AssignmentIntake, p.Field(discriminator="type")]
