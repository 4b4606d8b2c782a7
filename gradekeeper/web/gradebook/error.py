"""Translation of grading errors into HTTP responses."""

from __future__ import annotations

import typing as t

from fastapi import Request, status
from fastapi.responses import JSONResponse

from gradekeeper.grading import ConcurrentModificationError, DuplicateDisputeError, GradingError, \
    InvalidRubricSelectionError, InvalidScoreError, InvalidTransitionError, LockedCourseError, NotEnrolledError, \
    ResubmissionNotAllowedError, UnknownContentItemError, UnknownCourseError, UnknownGradeError, UnknownRubricError, \
    UnknownSubmissionError

# UnknownDisputeError is found through its UnknownGradeError base
ErrorStatus: t.Final[dict[type[GradingError], int]] = {
    LockedCourseError: status.HTTP_423_LOCKED,
    UnknownGradeError: status.HTTP_404_NOT_FOUND,
    UnknownCourseError: status.HTTP_404_NOT_FOUND,
    UnknownContentItemError: status.HTTP_404_NOT_FOUND,
    UnknownRubricError: status.HTTP_404_NOT_FOUND,
    UnknownSubmissionError: status.HTTP_404_NOT_FOUND,
    DuplicateDisputeError: status.HTTP_409_CONFLICT,
    InvalidTransitionError: status.HTTP_409_CONFLICT,
    ResubmissionNotAllowedError: status.HTTP_409_CONFLICT,
    ConcurrentModificationError: status.HTTP_409_CONFLICT,
    InvalidScoreError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    InvalidRubricSelectionError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    NotEnrolledError: status.HTTP_403_FORBIDDEN,
}


def status_for(error: GradingError) -> int:
    for cls in type(error).__mro__:
        if cls in ErrorStatus:
            return ErrorStatus[cls]
    return status.HTTP_400_BAD_REQUEST


async def handle_grading_error(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, GradingError)
    return JSONResponse(
        status_code=status_for(exc),
        content={"detail": exc.message, "error": exc.code},
    )
