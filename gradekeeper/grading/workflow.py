"""The grading workflow: how submissions become grades, and how grades change.

A grade moves through

    (no grade) -> pending review -> graded <-> disputed

and every write is refused once the owning course is finalized or archived.
Each write runs in its own transaction while holding the course's lock, so a
write either commits before a concurrent finalize or sees the finalized
course and fails. Callers pass a session that is not already in a
transaction.
"""

from __future__ import annotations

import contextlib
import datetime
import logging
import typing as t

import sqlalchemy.exc

from gradekeeper.core.config.grading import GradingSettings
from gradekeeper.core.provider import TimestampProvider, utcnow
from gradekeeper.model import AssignmentIntake, AssignmentSubmission, ContentItem, ContentItemID, ContentType, \
    Course, CourseID, CourseStatus, DisputeID, DisputeStatus, Grade, GradeDispute, GradeID, GradeStatus, MaxScore, \
    MinScore, NotificationType, QuizIntake, QuizSubmission, RubricFeedbackEntry, Submission, SubmissionID, \
    SubmissionIntake, UserID
from gradekeeper.notify import NotificationChannel
from gradekeeper.storage import course as course_storage
from gradekeeper.storage import dispute as dispute_storage
from gradekeeper.storage import enrollment as enrollment_storage
from gradekeeper.storage import grade as grade_storage
from gradekeeper.storage import question as question_storage
from gradekeeper.storage import rubric as rubric_storage
from gradekeeper.storage import Session
from gradekeeper.storage import submission as submission_storage

from .autograde import grade_quiz, is_auto_gradable
from .errors import ConcurrentModificationError, DuplicateDisputeError, GradingError, InvalidScoreError, \
    InvalidTransitionError, LockedCourseError, NotEnrolledError, ResubmissionNotAllowedError, UnknownContentItemError, \
    UnknownCourseError, UnknownDisputeError, UnknownGradeError, UnknownRubricError
from .locks import CourseLocks
from .rubric import RubricSelection, score_from_rubric

logger = logging.getLogger(__name__)


class _Pending(t.NamedTuple):
    user_id: UserID
    type: NotificationType
    payload: dict[str, t.Any]


class _Write(object):
    """State of one write: the locked course, its timestamp and the notifications to send on commit."""

    def __init__(self, course: Course, now: datetime.datetime):
        self.course = course
        self.now = now
        self.outbox: list[_Pending] = []

    def notify(self, user_id: UserID, type: NotificationType, **payload: t.Any) -> None:
        self.outbox.append(_Pending(user_id, type, payload))


def check_score(score: t.Any) -> int:
    if isinstance(score, bool) or not isinstance(score, int):
        raise InvalidScoreError(f"score must be a whole percentage, got {score!r}", score=repr(score))
    if not (MinScore <= score <= MaxScore):
        raise InvalidScoreError(f"score must be between {MinScore} and {MaxScore}, got {score}", score=score)
    return score


class GradingWorkflow(object):
    def __init__(
        self,
        notifier: NotificationChannel,
        settings: GradingSettings | None = None,
        locks: CourseLocks | None = None,
        utcnow: TimestampProvider = utcnow,
    ):
        self.notifier = notifier
        self.settings = settings or GradingSettings()
        self.locks = locks or CourseLocks()
        self.utcnow = utcnow

    # plumbing

    @contextlib.contextmanager
    def _write(self, operation: str, course_id: CourseID, session: Session) -> t.Iterator[_Write]:
        try:
            with self.locks.hold(course_id), session.begin():
                course = course_storage.get(course_id, for_update=True, session=session)
                if course is None:
                    raise UnknownCourseError(f"no course {course_id}", course_id=course_id)
                if course.status.is_locked:
                    raise LockedCourseError(
                        f"course {course_id} is {course.status.value}; its grades can no longer change",
                        course_id=course_id,
                    )
                w = _Write(course, self.utcnow())
                yield w
        except GradingError as e:
            logger.warning(
                "grading write rejected",
                extra={
                    "operation": operation,
                    "course_id": course_id,
                    "error": e.code,
                    "detail": e.message,
                },
            )
            raise

        for pending in w.outbox:
            self._deliver(pending)

    def _deliver(self, pending: _Pending) -> None:
        try:
            self.notifier.notify(pending.user_id, pending.type, pending.payload)
        except Exception:
            # the write is committed; a lost notification must not turn it into a failure
            logger.warning(
                "notification delivery failed",
                exc_info=True,
                extra={"user_id": pending.user_id, "type": pending.type.value},
            )

    def _gradable_item(self, w: _Write, content_item_id: ContentItemID, session: Session) -> ContentItem:
        item = course_storage.get_content_item(content_item_id, session=session)
        if item is None or item.course_id != w.course.course_id or not item.type.is_gradable:
            raise UnknownContentItemError(
                f"course {w.course.course_id} has no gradable item {content_item_id}",
                content_item_id=content_item_id,
            )
        return item

    def _require_enrolled(self, w: _Write, student_id: UserID, session: Session) -> None:
        if not enrollment_storage.is_enrolled(course_id=w.course.course_id, student_id=student_id, session=session):
            raise NotEnrolledError(
                f"student {student_id} is not enrolled in course {w.course.course_id}",
                student_id=student_id,
            )

    def _update(self, grade: Grade, w: _Write, session: Session, **values: t.Any) -> None:
        try:
            grade_storage.update(
                grade.grade_id,
                expected_revision=grade.revision,
                timestamp=w.now,
                session=session,
                **values,
            )
        except KeyError as e:
            raise ConcurrentModificationError(
                f"grade {grade.grade_id} changed while it was being written", grade_id=grade.grade_id
            ) from e

    def _replayed(self, operation_id: str | None, kind: str, target: str, session: Session) -> GradeID | None:
        """The grade a repeated operation id was applied to, or None for a new one.

        Raises:
            InvalidTransitionError: If the id was already used for a different write
        """
        if operation_id is None:
            return None
        applied = grade_storage.find_operation(operation_id, session=session)
        if applied is None:
            return None
        if (applied.kind, applied.target) != (kind, target):
            raise InvalidTransitionError(
                f"operation {operation_id} was already applied as {applied.kind} of {applied.target}",
                operation_id=operation_id,
            )
        return applied.grade_id

    @staticmethod
    def _remember(
        w: _Write, operation_id: str | None, kind: str, target: str, grade_id: GradeID, session: Session
    ) -> None:
        if operation_id is not None:
            grade_storage.record_operation(
                operation_id=operation_id,
                grade_id=grade_id,
                kind=kind,
                target=target,
                timestamp=w.now,
                session=session,
            )

    def _upsert(
        self,
        w: _Write,
        *,
        student_id: UserID,
        content_item_id: ContentItemID,
        score: int,
        reason: str,
        modifier_name: str,
        session: Session,
        submission_id: SubmissionID | None = None,
        feedback: str | None = None,
        rubric_feedback: t.Mapping[str, RubricFeedbackEntry] | None = None,
    ) -> Grade:
        grade = grade_storage.get_for(student_id=student_id, content_item_id=content_item_id, session=session)
        old_score = None
        if grade is not None:
            # a grade reset for a new attempt still chains from its last recorded score
            old_score = grade.score
            if old_score is None and grade.history:
                old_score = grade.history[-1].new_score

        if grade is None:
            try:
                grade = grade_storage.create(
                    student_id=student_id,
                    course_id=w.course.course_id,
                    content_item_id=content_item_id,
                    status=GradeStatus.Graded,
                    score=score,
                    submission_id=submission_id,
                    feedback=feedback,
                    rubric_feedback=rubric_feedback,
                    timestamp=w.now,
                    session=session,
                )
            except sqlalchemy.exc.IntegrityError as e:
                raise ConcurrentModificationError(
                    f"a grade for student {student_id} on {content_item_id} was created concurrently",
                    student_id=student_id,
                ) from e
        else:
            values: dict[str, t.Any] = {"score": score, "status": GradeStatus.Graded}
            if submission_id is not None:
                values["submission_id"] = submission_id
            if feedback is not None:
                values["feedback"] = feedback
            if rubric_feedback is not None:
                values["rubric_feedback"] = rubric_feedback
            self._update(grade, w, session, **values)

        entry = grade_storage.append_history(
            grade_id=grade.grade_id,
            modifier_name=modifier_name,
            old_score=old_score,
            new_score=score,
            reason=reason,
            timestamp=w.now,
            session=session,
        )
        logger.info(
            "grade scored",
            extra={
                "grade_id": grade.grade_id,
                "student_id": student_id,
                "content_item_id": content_item_id,
                "old_score": old_score,
                "new_score": score,
                "reason": reason,
                "modifier": modifier_name,
                "sequence": entry.sequence,
            },
        )
        w.notify(
            student_id,
            NotificationType.GradePosted,
            grade_id=str(grade.grade_id),
            course_id=str(w.course.course_id),
            content_item_id=str(content_item_id),
            score=score,
        )
        result = grade_storage.get(grade.grade_id, session=session)
        assert result is not None
        return result

    def _set_pending(
        self,
        w: _Write,
        *,
        student_id: UserID,
        content_item_id: ContentItemID,
        submission_id: SubmissionID,
        session: Session,
    ) -> Grade:
        grade = grade_storage.get_for(student_id=student_id, content_item_id=content_item_id, session=session)
        if grade is None:
            grade = grade_storage.create(
                student_id=student_id,
                course_id=w.course.course_id,
                content_item_id=content_item_id,
                status=GradeStatus.PendingReview,
                submission_id=submission_id,
                timestamp=w.now,
                session=session,
            )
        elif grade.submission_id != submission_id:
            if grade.is_disputed:
                raise InvalidTransitionError(
                    f"grade {grade.grade_id} has an open dispute", grade_id=grade.grade_id
                )
            # a new attempt: the previous score stays in the history
            self._update(
                grade,
                w,
                session,
                status=GradeStatus.PendingReview,
                score=None,
                submission_id=submission_id,
                feedback=None,
                rubric_feedback=None,
                can_resubmit=False,
            )

        logger.info(
            "grade pending review",
            extra={
                "grade_id": grade.grade_id,
                "student_id": student_id,
                "content_item_id": content_item_id,
                "submission_id": submission_id,
            },
        )
        result = grade_storage.get(grade.grade_id, session=session)
        assert result is not None
        return result

    # ledger

    def get_grade(self, *, student_id: UserID, content_item_id: ContentItemID, session: Session) -> Grade | None:
        with session.begin():
            return grade_storage.get_for(student_id=student_id, content_item_id=content_item_id, session=session)

    def upsert_score(
        self,
        *,
        student_id: UserID,
        course_id: CourseID,
        content_item_id: ContentItemID,
        score: int,
        reason: str | None,
        modifier_name: str,
        session: Session,
        operation_id: str | None = None,
        feedback: str | None = None,
    ) -> Grade:
        """Set a student's score for a gradable item, creating the grade if needed.

        Exactly one history entry is appended per call. A call repeating an
        ``operation_id`` that was already applied returns the grade as it is
        now and changes nothing.

        Raises:
            UnknownCourseError: If there is no such course
            LockedCourseError: If the course is finalized or archived
            InvalidScoreError: If score is not an integer in [0, 100]
            UnknownContentItemError: If the item is not a gradable item of the course
            NotEnrolledError: If the student is not enrolled in the course
            ConcurrentModificationError: If the grade changed underneath the write
            InvalidTransitionError: If operation_id was already used for another write
        """
        target = f"{student_id}/{content_item_id}"
        with self._write("upsert_score", course_id, session) as w:
            if (grade_id := self._replayed(operation_id, "score", target, session)) is not None:
                grade = grade_storage.get(grade_id, session=session)
                assert grade is not None
                return grade

            check_score(score)
            self._gradable_item(w, content_item_id, session)
            self._require_enrolled(w, student_id, session)
            grade = self._upsert(
                w,
                student_id=student_id,
                content_item_id=content_item_id,
                score=score,
                reason=reason or self.settings.manual_grade_reason,
                modifier_name=modifier_name,
                feedback=feedback,
                session=session,
            )
            self._remember(w, operation_id, "score", target, grade.grade_id, session)
            return grade

    def set_pending_review(
        self,
        *,
        student_id: UserID,
        course_id: CourseID,
        content_item_id: ContentItemID,
        submission_id: SubmissionID,
        session: Session,
    ) -> Grade:
        """Mark a grade as awaiting manual grading of ``submission_id``.

        Creates the grade when there is none. A grade for an earlier
        submission is reset to pending review without a history entry; a grade
        already tracking ``submission_id`` is returned unchanged.
        """
        with self._write("set_pending_review", course_id, session) as w:
            self._gradable_item(w, content_item_id, session)
            self._require_enrolled(w, student_id, session)
            return self._set_pending(
                w,
                student_id=student_id,
                content_item_id=content_item_id,
                submission_id=submission_id,
                session=session,
            )

    def toggle_resubmission(
        self,
        *,
        student_id: UserID,
        content_item_id: ContentItemID,
        allow: bool,
        session: Session,
    ) -> Grade:
        """Allow (or stop allowing) the student another attempt regardless of attempt limits.

        Raises:
            UnknownContentItemError: If there is no such content item
            UnknownGradeError: If the student has no grade for the item
            LockedCourseError: If the course is finalized or archived
        """
        with session.begin():
            item = course_storage.get_content_item(content_item_id, session=session)
        if item is None:
            raise UnknownContentItemError(f"no content item {content_item_id}", content_item_id=content_item_id)

        with self._write("toggle_resubmission", item.course_id, session) as w:
            grade = grade_storage.get_for(student_id=student_id, content_item_id=content_item_id, session=session)
            if grade is None:
                raise UnknownGradeError(
                    f"student {student_id} has no grade for {content_item_id}",
                    student_id=student_id,
                    content_item_id=content_item_id,
                )
            self._update(grade, w, session, can_resubmit=allow)
            logger.info(
                "resubmission toggled",
                extra={"grade_id": grade.grade_id, "student_id": student_id, "allow": allow},
            )
            result = grade_storage.get(grade.grade_id, session=session)
            assert result is not None
            return result

    # submissions

    def record_submission(self, intake: SubmissionIntake, *, session: Session) -> tuple[Submission, Grade]:
        """Store a student's submission and move its grade along.

        A quiz whose questions can all be scored automatically is graded on
        the spot. Anything else (assignments, examinations, quizzes with
        free-text questions) is left pending review.

        A further attempt is accepted while the grade is still pending review
        (assignments and examinations), the instructor allowed a
        resubmission, or the item's attempt limit is not reached.

        Raises:
            LockedCourseError: If the course is finalized or archived
            UnknownContentItemError: If the item is not a gradable item of the course
            NotEnrolledError: If the student is not enrolled in the course
            InvalidTransitionError: If the submission type does not fit the item, or the grade is disputed
            ResubmissionNotAllowedError: If the student has no attempts left
        """
        with self._write("record_submission", intake.course_id, session) as w:
            item = self._gradable_item(w, intake.content_item_id, session)
            self._require_enrolled(w, intake.student_id, session)

            is_quiz = item.type is ContentType.Quiz
            if isinstance(intake, QuizIntake) != is_quiz:
                raise InvalidTransitionError(
                    f"a {intake.type} submission cannot be recorded for {item.type.value} {item.content_item_id}",
                    content_item_id=item.content_item_id,
                )

            prior_attempts = submission_storage.count(
                student_id=intake.student_id, content_item_id=item.content_item_id, session=session
            )
            grade = grade_storage.get_for(
                student_id=intake.student_id, content_item_id=item.content_item_id, session=session
            )
            self._check_attempt(item, grade, prior_attempts)

            submission: Submission
            match intake:
                case QuizIntake():
                    submission = QuizSubmission(
                        submission_id=SubmissionID(),
                        student_id=intake.student_id,
                        course_id=intake.course_id,
                        content_item_id=intake.content_item_id,
                        submitted_at=w.now,
                        attempt_number=prior_attempts + 1,
                        answers=intake.answers,
                    )
                case AssignmentIntake():
                    submission = AssignmentSubmission(
                        submission_id=SubmissionID(),
                        student_id=intake.student_id,
                        course_id=intake.course_id,
                        content_item_id=intake.content_item_id,
                        submitted_at=w.now,
                        file=intake.file,
                        text_content=intake.text_content,
                    )
            submission_storage.create(submission, session=session)
            logger.info(
                "submission recorded",
                extra={
                    "submission_id": submission.submission_id,
                    "student_id": submission.student_id,
                    "content_item_id": submission.content_item_id,
                    "type": submission.type,
                },
            )
            w.notify(
                w.course.instructor_id,
                NotificationType.SubmissionReceived,
                submission_id=str(submission.submission_id),
                student_id=str(submission.student_id),
                content_item_id=str(submission.content_item_id),
            )

            if grade is not None and grade.can_resubmit:
                self._update(grade, w, session, can_resubmit=False)

            questions = question_storage.find(question_ids=item.question_ids, session=session)
            match submission:
                case QuizSubmission(attempt_number=attempt, answers=answers) if questions and all(
                    is_auto_gradable(q) for q in questions
                ):
                    result = grade_quiz(questions, answers)
                    reason = self.settings.auto_grade_reason
                    if attempt > 1:
                        reason = f"{reason} (attempt {attempt})"
                    grade = self._upsert(
                        w,
                        student_id=submission.student_id,
                        content_item_id=submission.content_item_id,
                        score=result.percentage,
                        reason=reason,
                        modifier_name=self.settings.auto_grade_modifier,
                        submission_id=submission.submission_id,
                        session=session,
                    )
                case _:
                    grade = self._set_pending(
                        w,
                        student_id=submission.student_id,
                        content_item_id=submission.content_item_id,
                        submission_id=submission.submission_id,
                        session=session,
                    )
            return submission, grade

    @staticmethod
    def _check_attempt(item: ContentItem, grade: Grade | None, prior_attempts: int) -> None:
        if grade is None:
            return
        if grade.is_disputed:
            raise InvalidTransitionError(
                f"grade {grade.grade_id} has an open dispute; resolve it before resubmitting",
                grade_id=grade.grade_id,
            )
        if grade.status is GradeStatus.PendingReview and item.type is not ContentType.Quiz:
            return
        if grade.can_resubmit:
            return
        if item.attempts_limit is not None and prior_attempts < item.attempts_limit:
            return
        raise ResubmissionNotAllowedError(
            f"no attempts left on {item.content_item_id} ({prior_attempts} of {item.attempts_limit or 1} used)",
            content_item_id=item.content_item_id,
            attempts=prior_attempts,
        )

    def grade_with_rubric(
        self,
        *,
        student_id: UserID,
        course_id: CourseID,
        content_item_id: ContentItemID,
        selections: t.Mapping[str, RubricSelection | str],
        modifier_name: str,
        session: Session,
        reason: str | None = None,
        feedback: str | None = None,
        operation_id: str | None = None,
    ) -> Grade:
        """Score a submission with the item's rubric and record the percentage.

        The rubric breakdown is copied onto the grade, so later edits to the
        rubric do not change it.

        Raises:
            UnknownRubricError: If the item has no rubric, or it no longer exists
            InvalidRubricSelectionError: If a selection does not fit the rubric
            (and everything upsert_score raises)
        """
        target = f"{student_id}/{content_item_id}"
        with self._write("grade_with_rubric", course_id, session) as w:
            if (grade_id := self._replayed(operation_id, "rubric", target, session)) is not None:
                grade = grade_storage.get(grade_id, session=session)
                assert grade is not None
                return grade

            item = self._gradable_item(w, content_item_id, session)
            self._require_enrolled(w, student_id, session)
            rubric = rubric_storage.get(item.rubric_id, session=session) if item.rubric_id else None
            if rubric is None:
                raise UnknownRubricError(
                    f"content item {content_item_id} has no rubric", content_item_id=content_item_id
                )

            score = score_from_rubric(rubric, selections)
            grade = self._upsert(
                w,
                student_id=student_id,
                content_item_id=content_item_id,
                score=score.percentage,
                reason=reason or self.settings.manual_grade_reason,
                modifier_name=modifier_name,
                feedback=feedback,
                rubric_feedback=score.breakdown,
                session=session,
            )
            self._remember(w, operation_id, "rubric", target, grade.grade_id, session)
            return grade

    def grade_quiz_manually(
        self,
        *,
        student_id: UserID,
        course_id: CourseID,
        content_item_id: ContentItemID,
        marks: t.Mapping[str, int],
        modifier_name: str,
        session: Session,
        reason: str | None = None,
        feedback: str | None = None,
        operation_id: str | None = None,
    ) -> Grade:
        """Score the student's latest quiz attempt with marks for the hand-graded questions.

        ``marks`` maps the id of each question without acceptable answers to the
        points awarded. Objective questions are scored from the answers, the
        same way a fully objective quiz is scored on submission.

        Raises:
            InvalidTransitionError: If the student has no quiz submission for the item
            InvalidScoreError: If a mark is missing or does not fit its question
            (and everything upsert_score raises)
        """
        target = f"{student_id}/{content_item_id}"
        with self._write("grade_quiz_manually", course_id, session) as w:
            if (grade_id := self._replayed(operation_id, "quiz", target, session)) is not None:
                grade = grade_storage.get(grade_id, session=session)
                assert grade is not None
                return grade

            item = self._gradable_item(w, content_item_id, session)
            self._require_enrolled(w, student_id, session)
            submission = submission_storage.latest(
                student_id=student_id, content_item_id=content_item_id, session=session
            )
            if not isinstance(submission, QuizSubmission):
                raise InvalidTransitionError(
                    f"student {student_id} has no quiz submission for {content_item_id}",
                    student_id=student_id,
                    content_item_id=content_item_id,
                )

            questions = question_storage.find(question_ids=item.question_ids, session=session)
            result = grade_quiz(questions, submission.answers, marks)
            grade = self._upsert(
                w,
                student_id=student_id,
                content_item_id=content_item_id,
                score=result.percentage,
                reason=reason or self.settings.manual_grade_reason,
                modifier_name=modifier_name,
                submission_id=submission.submission_id,
                feedback=feedback,
                session=session,
            )
            self._remember(w, operation_id, "quiz", target, grade.grade_id, session)
            return grade

    # disputes

    def file_dispute(self, *, grade_id: GradeID, student_id: UserID, reason: str, session: Session) -> GradeDispute:
        """Open a dispute on a graded grade.

        Raises:
            UnknownGradeError: If there is no such grade, or it is not the student's
            LockedCourseError: If the course is finalized or archived
            InvalidTransitionError: If the grade has no score yet
            DuplicateDisputeError: If a dispute on the grade is already pending
        """
        with session.begin():
            grade = grade_storage.get(grade_id, session=session)
        if grade is None or grade.student_id != student_id:
            raise UnknownGradeError(f"student {student_id} has no grade {grade_id}", grade_id=grade_id)

        with self._write("file_dispute", grade.course_id, session) as w:
            grade = grade_storage.get(grade_id, session=session)
            assert grade is not None
            if grade.status is not GradeStatus.Graded:
                raise InvalidTransitionError(f"grade {grade_id} has not been graded yet", grade_id=grade_id)
            open_disputes = dispute_storage.find(grade_id=grade_id, status=DisputeStatus.Pending, session=session)
            if grade.is_disputed or open_disputes:
                raise DuplicateDisputeError(f"grade {grade_id} already has a pending dispute", grade_id=grade_id)

            dispute = dispute_storage.create(
                grade_id=grade_id,
                student_id=student_id,
                student_reason=reason,
                create_time=w.now,
                session=session,
            )
            self._update(grade, w, session, is_disputed=True, dispute_id=dispute.dispute_id)
            logger.info(
                "dispute filed",
                extra={"dispute_id": dispute.dispute_id, "grade_id": grade_id, "student_id": student_id},
            )
            w.notify(
                w.course.instructor_id,
                NotificationType.DisputeFiled,
                dispute_id=str(dispute.dispute_id),
                grade_id=str(grade_id),
                student_id=str(student_id),
            )
            return dispute

    def resolve_dispute(
        self,
        *,
        dispute_id: DisputeID,
        accept: bool,
        comment: str,
        resolver_name: str,
        session: Session,
        new_score: int | None = None,
        operation_id: str | None = None,
    ) -> tuple[Grade, GradeDispute]:
        """Accept (with a new score) or reject a pending dispute.

        Accepting records the new score with reason ``"Dispute accepted:
        <comment>"``; rejecting leaves the score alone. Either way the grade
        is no longer disputed, and the resolution is final.

        Raises:
            UnknownDisputeError: If there is no such dispute
            LockedCourseError: If the course is finalized or archived
            InvalidTransitionError: If the dispute is already resolved, accepted without a score, or
                operation_id was already used for another write
            InvalidScoreError: If new_score is not an integer in [0, 100]
        """
        with session.begin():
            dispute = dispute_storage.get(dispute_id, session=session)
            grade = grade_storage.get(dispute.grade_id, session=session) if dispute else None
        if dispute is None or grade is None:
            raise UnknownDisputeError(f"no dispute {dispute_id}", dispute_id=dispute_id)

        with self._write("resolve_dispute", grade.course_id, session) as w:
            if self._replayed(operation_id, "dispute", str(dispute_id), session) is not None:
                return self._dispute_state(dispute_id, session)

            dispute = dispute_storage.get(dispute_id, session=session)
            grade = grade_storage.get(grade.grade_id, session=session)
            assert dispute is not None and grade is not None
            if not dispute.is_open:
                raise InvalidTransitionError(
                    f"dispute {dispute_id} was already {dispute.status.value}", dispute_id=dispute_id
                )
            if accept:
                if new_score is None:
                    raise InvalidTransitionError(
                        f"accepting dispute {dispute_id} needs a new score", dispute_id=dispute_id
                    )
                check_score(new_score)

            status = DisputeStatus.Accepted if accept else DisputeStatus.Rejected
            dispute_storage.update(
                dispute_id,
                status=status,
                resolution_comment=comment,
                resolved_score=new_score if accept else None,
                resolver_name=resolver_name,
                resolve_time=w.now,
                session=session,
            )
            self._update(grade, w, session, is_disputed=False, dispute_id=None)

            if accept:
                assert new_score is not None
                self._upsert(
                    w,
                    student_id=grade.student_id,
                    content_item_id=grade.content_item_id,
                    score=new_score,
                    reason=f"Dispute accepted: {comment}",
                    modifier_name=resolver_name,
                    session=session,
                )
            else:
                if self.settings.record_dispute_rejections and grade.score is not None:
                    grade_storage.append_history(
                        grade_id=grade.grade_id,
                        modifier_name=resolver_name,
                        old_score=grade.score,
                        new_score=grade.score,
                        reason=f"Dispute rejected: {comment}",
                        timestamp=w.now,
                        session=session,
                    )
            self._remember(w, operation_id, "dispute", str(dispute_id), grade.grade_id, session)

            logger.info(
                "dispute resolved",
                extra={
                    "dispute_id": dispute_id,
                    "grade_id": grade.grade_id,
                    "status": status.value,
                    "resolver": resolver_name,
                    "new_score": new_score,
                },
            )
            w.notify(
                grade.student_id,
                NotificationType.DisputeResolved,
                dispute_id=str(dispute_id),
                grade_id=str(grade.grade_id),
                status=status.value,
                score=new_score if accept else grade.score,
            )
            return self._dispute_state(dispute_id, session)

    def _dispute_state(self, dispute_id: DisputeID, session: Session) -> tuple[Grade, GradeDispute]:
        dispute = dispute_storage.get(dispute_id, session=session)
        assert dispute is not None
        grade = grade_storage.get(dispute.grade_id, session=session)
        assert grade is not None
        return grade, dispute

    # finalize

    def finalize_course(self, *, course_id: CourseID, session: Session) -> Course:
        """Lock a course's gradebook for good.

        Finalizing twice is an error, not a no-op.

        Raises:
            UnknownCourseError: If there is no such course
            LockedCourseError: If the course is already finalized or archived
        """
        with self._write("finalize_course", course_id, session) as w:
            course_storage.update(course_id, status=CourseStatus.Finalized, update_time=w.now, session=session)
            students = enrollment_storage.find_students(course_id, session=session)
            logger.info(
                "gradebook finalized",
                extra={"course_id": course_id, "students": len(students)},
            )
            for student in students:
                w.notify(
                    student.user_id,
                    NotificationType.GradebookFinalized,
                    course_id=str(course_id),
                    title=w.course.title,
                )
            course = course_storage.get(course_id, session=session)
            assert course is not None
            return course
