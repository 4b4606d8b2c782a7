"""Errors raised by grading operations.

Every error carries a stable ``code`` that clients can match on; messages are
for humans and may change.
"""

from __future__ import annotations

import typing as t


class GradingError(Exception):
    code: t.ClassVar[str] = "grading_error"

    def __init__(self, message: str, **context: t.Any):
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        return self.message


class LockedCourseError(GradingError):
    """The course gradebook is finalized (or archived) and can no longer change."""

    code = "course_locked"


class InvalidScoreError(GradingError):
    code = "invalid_score"


class DuplicateDisputeError(GradingError):
    code = "duplicate_dispute"


class UnknownGradeError(GradingError):
    code = "unknown_grade"


class UnknownDisputeError(UnknownGradeError):
    """No such dispute. Also an UnknownGradeError: callers resolving a missing dispute may catch either."""

    code = "unknown_dispute"


class NotEnrolledError(GradingError):
    code = "not_enrolled"


class UnknownCourseError(GradingError):
    code = "unknown_course"


class UnknownContentItemError(GradingError):
    code = "unknown_content_item"


class UnknownRubricError(GradingError):
    code = "unknown_rubric"


class UnknownSubmissionError(GradingError):
    code = "unknown_submission"


class InvalidTransitionError(GradingError):
    """The grade or dispute is not in a state that allows the operation."""

    code = "invalid_transition"


class InvalidRubricSelectionError(GradingError):
    code = "invalid_rubric_selection"


class ResubmissionNotAllowedError(GradingError):
    code = "resubmission_not_allowed"


class ConcurrentModificationError(GradingError):
    """The grade changed between read and write; the caller may retry."""

    code = "concurrent_modification"
