__all__ = [
    # Errors
    "GradingError",
    "LockedCourseError",
    "InvalidScoreError",
    "DuplicateDisputeError",
    "UnknownGradeError",
    "UnknownDisputeError",
    "NotEnrolledError",
    "UnknownCourseError",
    "UnknownContentItemError",
    "UnknownRubricError",
    "UnknownSubmissionError",
    "InvalidTransitionError",
    "InvalidRubricSelectionError",
    "ResubmissionNotAllowedError",
    "ConcurrentModificationError",
    # Scoring
    "score_from_rubric",
    "grade_quiz",
    # Workflow
    "CourseLocks",
    "GradingWorkflow",
]

from .autograde import grade_quiz
from .errors import ConcurrentModificationError, DuplicateDisputeError, GradingError, InvalidRubricSelectionError, \
    InvalidScoreError, InvalidTransitionError, LockedCourseError, NotEnrolledError, ResubmissionNotAllowedError, \
    UnknownContentItemError, UnknownCourseError, UnknownDisputeError, UnknownGradeError, UnknownRubricError, \
    UnknownSubmissionError
from .locks import CourseLocks
from .rubric import score_from_rubric
from .workflow import GradingWorkflow
