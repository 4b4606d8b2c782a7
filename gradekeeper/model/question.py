import enum
import typing as t

import pydantic as p

from .base import BaseModel
from .id import QuestionID, UserID


# the `type` tag of each question variant below is one of these values
class QuestionType(enum.Enum):
    MultipleChoice = "multiple-choice"
    TrueFalse = "true-false"
    ShortAnswer = "short-answer"
    MultipleSelect = "multiple-select"
    FillBlank = "fill-in-the-blank"


class BaseQuestion(BaseModel):
    question_id: QuestionID
    instructor_id: UserID
    stem: str
    max_points: int = p.Field(default=1, ge=0)


class MultipleChoiceQuestion(BaseQuestion):
    type: t.Literal["multiple-choice"] = "multiple-choice"
    options: list[str]
    correct_answer_index: int


class TrueFalseQuestion(BaseQuestion):
    type: t.Literal["true-false"] = "true-false"
    correct_answer: bool


class ShortAnswerQuestion(BaseQuestion):
    type: t.Literal["short-answer"] = "short-answer"
    # empty means the answer is judged by an instructor
    acceptable_answers: list[str] = []


class MultipleSelectQuestion(BaseQuestion):
    type: t.Literal["multiple-select"] = "multiple-select"
    options: list[str]
    correct_answer_indices: list[int]


class FillBlankQuestion(BaseQuestion):
    type: t.Literal["fill-in-the-blank"] = "fill-in-the-blank"
    acceptable_answers: list[str]


Question = t.Annotated[
    MultipleChoiceQuestion | TrueFalseQuestion | ShortAnswerQuestion | MultipleSelectQuestion | FillBlankQuestion,
    p.Field(discriminator="type"),
]

QuestionAdapter: p.TypeAdapter[Question] = p.TypeAdapter(Question)

AnswerValue = str | int | bool | list[int]
