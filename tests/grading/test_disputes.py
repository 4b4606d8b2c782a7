"""Tests for filing and resolving grade disputes."""

from __future__ import annotations

import typing as t

import pytest
from sqlalchemy.orm import Session

from gradekeeper.core.config import GradingSettings
from gradekeeper.grading import CourseLocks, DuplicateDisputeError, GradingWorkflow, InvalidScoreError, \
    InvalidTransitionError, UnknownDisputeError, UnknownGradeError
from gradekeeper.model import AssignmentIntake, DisputeID, DisputeStatus, Grade, GradeDispute, GradeID, \
    GradeStatus, NotificationType
from gradekeeper.notify import InMemoryNotificationChannel
from gradekeeper.storage import dispute as dispute_storage
from gradekeeper.storage import grade as grade_storage

if t.TYPE_CHECKING:
    from gradekeeper.core import TimestampProvider
    from tests.conftest import Classroom


@pytest.fixture
def graded(workflow: GradingWorkflow, classroom: Classroom, db_session: Session) -> Grade:
    """The first student's examination, graded 75."""
    return workflow.upsert_score(
        student_id=classroom.student.user_id,
        course_id=classroom.course.course_id,
        content_item_id=classroom.exam.content_item_id,
        score=75,
        reason="Graded by instructor",
        modifier_name="Ada Instructor",
        session=db_session,
    )


@pytest.fixture
def dispute(workflow: GradingWorkflow, graded: Grade, db_session: Session) -> GradeDispute:
    return workflow.file_dispute(
        grade_id=graded.grade_id,
        student_id=graded.student_id,
        reason="Part 3 was summed incorrectly",
        session=db_session,
    )


def current(session: Session, grade_id: GradeID) -> Grade:
    with session.begin():
        grade = grade_storage.get(grade_id, session=session)
    assert grade is not None
    return grade


class TestScenarioAcceptedDispute(object):
    """A graded exam is disputed and the instructor accepts with a new score."""

    def test_file_then_accept(
        self,
        workflow: GradingWorkflow,
        graded: Grade,
        db_session: Session,
    ) -> None:
        dispute = workflow.file_dispute(
            grade_id=graded.grade_id,
            student_id=graded.student_id,
            reason="Part 3 was summed incorrectly",
            session=db_session,
        )

        disputed = current(db_session, graded.grade_id)
        assert disputed.is_disputed is True
        assert disputed.dispute_id == dispute.dispute_id
        assert disputed.score == 75

        grade, resolved = workflow.resolve_dispute(
            dispute_id=dispute.dispute_id,
            accept=True,
            new_score=82,
            comment="Recalculated part 3",
            resolver_name="Ada Instructor",
            session=db_session,
        )

        assert grade.score == 82
        assert grade.is_disputed is False
        assert grade.dispute_id is None
        assert len(grade.history) == 2
        second = grade.history[1]
        assert (second.old_score, second.new_score) == (75, 82)
        assert "Recalculated part 3" in second.reason
        assert second.modifier_name == "Ada Instructor"
        assert resolved.status is DisputeStatus.Accepted
        assert resolved.resolved_score == 82
        assert resolved.resolve_time is not None


class TestFileDispute(object):
    """Tests for GradingWorkflow.file_dispute()."""

    def test_second_pending_dispute_is_refused(
        self,
        workflow: GradingWorkflow,
        dispute: GradeDispute,
        graded: Grade,
        db_session: Session,
    ) -> None:
        with pytest.raises(DuplicateDisputeError):
            workflow.file_dispute(
                grade_id=graded.grade_id, student_id=graded.student_id, reason="Again", session=db_session
            )

        with db_session.begin():
            disputes = dispute_storage.find(grade_id=graded.grade_id, session=db_session)
        assert [d.dispute_id for d in disputes] == [dispute.dispute_id]

    def test_new_dispute_after_resolution(
        self,
        workflow: GradingWorkflow,
        dispute: GradeDispute,
        graded: Grade,
        db_session: Session,
    ) -> None:
        workflow.resolve_dispute(
            dispute_id=dispute.dispute_id,
            accept=False,
            comment="Marking is correct",
            resolver_name="Ada Instructor",
            session=db_session,
        )

        again = workflow.file_dispute(
            grade_id=graded.grade_id, student_id=graded.student_id, reason="Question 7 too", session=db_session
        )

        assert again.is_open
        assert again.dispute_id != dispute.dispute_id

    def test_pending_grade_cannot_be_disputed(
        self,
        workflow: GradingWorkflow,
        classroom: Classroom,
        db_session: Session,
    ) -> None:
        _, pending = workflow.record_submission(
            AssignmentIntake(
                student_id=classroom.student.user_id,
                course_id=classroom.course.course_id,
                content_item_id=classroom.assignment.content_item_id,
                text_content="essay",
            ),
            session=db_session,
        )

        with pytest.raises(InvalidTransitionError):
            workflow.file_dispute(
                grade_id=pending.grade_id, student_id=pending.student_id, reason="?", session=db_session
            )

    def test_unknown_grade(self, workflow: GradingWorkflow, classroom: Classroom, db_session: Session) -> None:
        with pytest.raises(UnknownGradeError):
            workflow.file_dispute(
                grade_id=GradeID(), student_id=classroom.student.user_id, reason="?", session=db_session
            )

    def test_only_the_graded_student_may_dispute(
        self,
        workflow: GradingWorkflow,
        graded: Grade,
        classroom: Classroom,
        db_session: Session,
    ) -> None:
        with pytest.raises(UnknownGradeError):
            workflow.file_dispute(
                grade_id=graded.grade_id,
                student_id=classroom.students[1].user_id,
                reason="Not mine",
                session=db_session,
            )

    def test_instructor_is_notified(
        self,
        dispute: GradeDispute,
        classroom: Classroom,
        notifications: InMemoryNotificationChannel,
    ) -> None:
        (filed,) = notifications.of_type(NotificationType.DisputeFiled)
        assert filed.user_id == classroom.instructor.user_id
        assert filed.payload["dispute_id"] == str(dispute.dispute_id)

    def test_disputed_grade_cannot_be_resubmitted(
        self,
        workflow: GradingWorkflow,
        classroom: Classroom,
        db_session: Session,
    ) -> None:
        intake = AssignmentIntake(
            student_id=classroom.student.user_id,
            course_id=classroom.course.course_id,
            content_item_id=classroom.assignment.content_item_id,
            text_content="essay",
        )
        _, pending = workflow.record_submission(intake, session=db_session)
        workflow.upsert_score(
            student_id=classroom.student.user_id,
            course_id=classroom.course.course_id,
            content_item_id=classroom.assignment.content_item_id,
            score=58,
            reason="Graded by instructor",
            modifier_name="Ada Instructor",
            session=db_session,
        )
        workflow.toggle_resubmission(
            student_id=classroom.student.user_id,
            content_item_id=classroom.assignment.content_item_id,
            allow=True,
            session=db_session,
        )
        workflow.file_dispute(
            grade_id=pending.grade_id, student_id=pending.student_id, reason="Too harsh", session=db_session
        )

        with pytest.raises(InvalidTransitionError):
            workflow.record_submission(intake, session=db_session)


class TestResolveDispute(object):
    """Tests for GradingWorkflow.resolve_dispute()."""

    def test_reject_keeps_score(
        self,
        workflow: GradingWorkflow,
        dispute: GradeDispute,
        graded: Grade,
        db_session: Session,
    ) -> None:
        grade, resolved = workflow.resolve_dispute(
            dispute_id=dispute.dispute_id,
            accept=False,
            comment="Marking is correct",
            resolver_name="Ada Instructor",
            session=db_session,
        )

        assert grade.score == 75
        assert grade.is_disputed is False
        assert len(grade.history) == 1
        assert resolved.status is DisputeStatus.Rejected
        assert resolved.resolution_comment == "Marking is correct"
        assert resolved.resolved_score is None

    def test_reject_recorded_in_history_when_configured(
        self,
        classroom: Classroom,
        graded: Grade,
        dispute: GradeDispute,
        db_session: Session,
        utcnow: TimestampProvider,
    ) -> None:
        workflow = GradingWorkflow(
            InMemoryNotificationChannel(), GradingSettings(record_dispute_rejections=True), CourseLocks(), utcnow
        )

        grade, _ = workflow.resolve_dispute(
            dispute_id=dispute.dispute_id,
            accept=False,
            comment="Marking is correct",
            resolver_name="Ada Instructor",
            session=db_session,
        )

        assert grade.score == 75
        assert len(grade.history) == 2
        assert (grade.history[1].old_score, grade.history[1].new_score) == (75, 75)
        assert "Marking is correct" in grade.history[1].reason

    def test_resolution_is_final(
        self,
        workflow: GradingWorkflow,
        dispute: GradeDispute,
        db_session: Session,
    ) -> None:
        workflow.resolve_dispute(
            dispute_id=dispute.dispute_id,
            accept=False,
            comment="Marking is correct",
            resolver_name="Ada Instructor",
            session=db_session,
        )

        with pytest.raises(InvalidTransitionError):
            workflow.resolve_dispute(
                dispute_id=dispute.dispute_id,
                accept=True,
                new_score=100,
                comment="Changed my mind",
                resolver_name="Ada Instructor",
                session=db_session,
            )

    def test_accept_needs_a_score(
        self,
        workflow: GradingWorkflow,
        dispute: GradeDispute,
        graded: Grade,
        db_session: Session,
    ) -> None:
        with pytest.raises(InvalidTransitionError):
            workflow.resolve_dispute(
                dispute_id=dispute.dispute_id,
                accept=True,
                comment="Fine",
                resolver_name="Ada Instructor",
                session=db_session,
            )

        assert current(db_session, graded.grade_id).is_disputed is True

    def test_accept_with_invalid_score_changes_nothing(
        self,
        workflow: GradingWorkflow,
        dispute: GradeDispute,
        graded: Grade,
        db_session: Session,
    ) -> None:
        with pytest.raises(InvalidScoreError):
            workflow.resolve_dispute(
                dispute_id=dispute.dispute_id,
                accept=True,
                new_score=120,
                comment="Bonus",
                resolver_name="Ada Instructor",
                session=db_session,
            )

        grade = current(db_session, graded.grade_id)
        assert grade.is_disputed is True
        assert grade.score == 75
        with db_session.begin():
            still = dispute_storage.get(dispute.dispute_id, session=db_session)
        assert still is not None and still.is_open

    def test_unknown_dispute(self, workflow: GradingWorkflow, db_session: Session) -> None:
        with pytest.raises(UnknownDisputeError) as exc_info:
            workflow.resolve_dispute(
                dispute_id=DisputeID(),
                accept=False,
                comment="",
                resolver_name="Ada Instructor",
                session=db_session,
            )

        assert isinstance(exc_info.value, UnknownGradeError)
        assert exc_info.value.code == "unknown_dispute"

    def test_replayed_resolution_applies_once(
        self,
        workflow: GradingWorkflow,
        dispute: GradeDispute,
        db_session: Session,
    ) -> None:
        kwargs: dict[str, t.Any] = {
            "dispute_id": dispute.dispute_id,
            "accept": True,
            "new_score": 90,
            "comment": "Regraded",
            "resolver_name": "Ada Instructor",
            "operation_id": "resolve-1",
        }
        first, _ = workflow.resolve_dispute(session=db_session, **kwargs)
        again, resolved = workflow.resolve_dispute(session=db_session, **kwargs)

        assert again.score == first.score == 90
        assert len(again.history) == 2
        assert resolved.status is DisputeStatus.Accepted

    def test_operation_id_of_a_score_is_refused(
        self,
        workflow: GradingWorkflow,
        dispute: GradeDispute,
        classroom: Classroom,
        db_session: Session,
    ) -> None:
        workflow.upsert_score(
            student_id=classroom.students[1].user_id,
            course_id=classroom.course.course_id,
            content_item_id=classroom.exam.content_item_id,
            score=60,
            reason=None,
            modifier_name="Ada Instructor",
            operation_id="shared-1",
            session=db_session,
        )

        with pytest.raises(InvalidTransitionError, match="shared-1"):
            workflow.resolve_dispute(
                dispute_id=dispute.dispute_id,
                accept=True,
                new_score=90,
                comment="Regraded",
                resolver_name="Ada Instructor",
                operation_id="shared-1",
                session=db_session,
            )

        with db_session.begin():
            still = dispute_storage.get(dispute.dispute_id, session=db_session)
        assert still is not None and still.is_open
        assert current(db_session, dispute.grade_id).is_disputed

    def test_student_is_notified(
        self,
        workflow: GradingWorkflow,
        dispute: GradeDispute,
        classroom: Classroom,
        db_session: Session,
        notifications: InMemoryNotificationChannel,
    ) -> None:
        workflow.resolve_dispute(
            dispute_id=dispute.dispute_id,
            accept=True,
            new_score=88,
            comment="Regraded",
            resolver_name="Ada Instructor",
            session=db_session,
        )

        (resolved,) = notifications.of_type(NotificationType.DisputeResolved)
        assert resolved.user_id == classroom.student.user_id
        assert resolved.payload["status"] == "accepted"
        assert resolved.payload["score"] == 88

    def test_grade_stays_graded(
        self,
        workflow: GradingWorkflow,
        dispute: GradeDispute,
        graded: Grade,
        db_session: Session,
    ) -> None:
        workflow.resolve_dispute(
            dispute_id=dispute.dispute_id,
            accept=True,
            new_score=60,
            comment="Found another error",
            resolver_name="Ada Instructor",
            session=db_session,
        )

        grade = current(db_session, graded.grade_id)
        assert grade.status is GradeStatus.Graded
        assert grade.score == 60
