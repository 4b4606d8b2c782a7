"""Objective scoring of quiz answers.

Multiple choice and true/false compare exactly, multiple select compares as
sets, short answer and fill-in-the-blank compare case-insensitively against
the acceptable answers. A short answer question without acceptable answers
has to be judged by an instructor.
"""

from __future__ import annotations

import typing as t

from gradekeeper.model import AnswerValue, FillBlankQuestion, MultipleChoiceQuestion, MultipleSelectQuestion, \
    Question, ShortAnswerQuestion, TrueFalseQuestion

from .errors import InvalidScoreError
from .rubric import percentage


class QuestionResult(t.NamedTuple):
    question_id: str
    points: int
    max_points: int


class QuizResult(t.NamedTuple):
    points: int
    max_points: int
    percentage: int
    results: tuple[QuestionResult, ...]


def _normalize(s: str) -> str:
    return s.strip().casefold()


def is_auto_gradable(question: Question) -> bool:
    match question:
        case ShortAnswerQuestion(acceptable_answers=acceptable):
            return bool(acceptable)
        case _:
            return True


def is_correct(question: Question, answer: AnswerValue | None) -> bool:
    if answer is None:
        return False

    match question:
        case MultipleChoiceQuestion(correct_answer_index=index):
            return not isinstance(answer, bool) and answer == index
        case TrueFalseQuestion(correct_answer=correct):
            return isinstance(answer, bool) and answer is correct
        case MultipleSelectQuestion(correct_answer_indices=indices):
            return isinstance(answer, list) and set(answer) == set(indices)
        case ShortAnswerQuestion(acceptable_answers=acceptable) | FillBlankQuestion(acceptable_answers=acceptable):
            return isinstance(answer, str) and _normalize(answer) in {_normalize(a) for a in acceptable}
        case _:
            t.assert_never(question)


def grade_quiz(
    questions: t.Sequence[Question],
    answers: t.Mapping[str, AnswerValue],
    marks: t.Mapping[str, int] | None = None,
) -> QuizResult:
    """Score every question of a quiz; unanswered questions earn nothing.

    Questions that cannot be graded automatically take their points from
    ``marks``, keyed by question id. Objective questions are always scored
    from the answers.

    Raises:
        ValueError: If a question cannot be graded automatically and no marks were given
        InvalidScoreError: If a mark is missing, is not a whole number between 0 and the
            question's points, or names a question that is not judged by hand
    """
    manual = {str(q.question_id): q for q in questions if not is_auto_gradable(q)}
    if marks is not None:
        for question_id in marks:
            if question_id not in manual:
                raise InvalidScoreError(
                    f"question {question_id} is not graded by hand on this quiz", question_id=question_id
                )

    results: list[QuestionResult] = []
    for question in questions:
        question_id = str(question.question_id)
        if question_id not in manual:
            earned = question.max_points if is_correct(question, answers.get(question_id)) else 0
        elif marks is None:
            raise ValueError(f"question {question_id} needs manual grading")
        else:
            earned = _mark(question, marks.get(question_id))
        results.append(QuestionResult(question_id, earned, question.max_points))

    points = sum(r.points for r in results)
    max_points = sum(r.max_points for r in results)
    return QuizResult(points, max_points, percentage(points, max_points), tuple(results))


def _mark(question: Question, mark: t.Any) -> int:
    if mark is None:
        raise InvalidScoreError(f"question {question.question_id} has no mark", question_id=question.question_id)
    if isinstance(mark, bool) or not isinstance(mark, int) or not 0 <= mark <= question.max_points:
        raise InvalidScoreError(
            f"mark for question {question.question_id} must be a whole number from 0 to {question.max_points}",
            question_id=question.question_id,
            mark=mark,
        )
    return mark
