"""Tests for the gradebook read models."""

from __future__ import annotations

import typing as t

import pytest
from sqlalchemy.orm import Session

from gradekeeper.grading import GradingWorkflow, UnknownContentItemError, UnknownCourseError, UnknownSubmissionError
from gradekeeper.grading import gradebook
from gradekeeper.model import AssignmentIntake, ContentType, Course, CourseID, GradeStatus, Module, QuizIntake, \
    SubmissionID, User
from gradekeeper.storage import enrollment as enrollment_storage
from gradekeeper.storage import submission as submission_storage

if t.TYPE_CHECKING:
    from tests.conftest import Classroom


def submit(workflow: GradingWorkflow, classroom: Classroom, student: User, session: Session) -> None:
    workflow.record_submission(
        AssignmentIntake(
            student_id=student.user_id,
            course_id=classroom.course.course_id,
            content_item_id=classroom.assignment.content_item_id,
            text_content=f"Essay by {student.name}",
        ),
        session=session,
    )


def score(workflow: GradingWorkflow, classroom: Classroom, student: User, item_id: t.Any, value: int, session: Session):
    return workflow.upsert_score(
        student_id=student.user_id,
        course_id=classroom.course.course_id,
        content_item_id=item_id,
        score=value,
        reason="Graded by instructor",
        modifier_name="Ada Instructor",
        session=session,
    )


@pytest.fixture
def triaged(workflow: GradingWorkflow, classroom: Classroom, db_session: Session) -> Classroom:
    """Two of the three students handed in the essay; the first of them is graded."""
    first, second, _ = classroom.students
    submit(workflow, classroom, first, db_session)
    submit(workflow, classroom, second, db_session)
    score(workflow, classroom, first, classroom.assignment.content_item_id, 88, db_session)
    return classroom


class TestGradingSummary(object):
    """Tests for get_grading_summary()."""

    def test_counts_per_item(self, triaged: Classroom, db_session: Session) -> None:
        with db_session.begin():
            (summary,) = gradebook.get_grading_summary(triaged.instructor.user_id, session=db_session)

        assert summary.course_id == triaged.course.course_id
        assert summary.is_locked is False
        assert [i.content_item_id for i in summary.items] == [
            triaged.quiz.content_item_id,
            triaged.manual_quiz.content_item_id,
            triaged.assignment.content_item_id,
            triaged.exam.content_item_id,
        ]
        essay = summary.items[2]
        assert (essay.total_enrolled, essay.submitted_count, essay.graded_count) == (3, 2, 1)
        assert essay.submission_rate == pytest.approx(2 / 3)
        assert (summary.items[0].submitted_count, summary.items[0].submission_rate) == (0, 0.0)

    def test_grade_without_submission_counts_as_graded(
        self,
        workflow: GradingWorkflow,
        classroom: Classroom,
        db_session: Session,
    ) -> None:
        score(workflow, classroom, classroom.student, classroom.exam.content_item_id, 70, db_session)

        with db_session.begin():
            (summary,) = gradebook.get_grading_summary(classroom.instructor.user_id, session=db_session)

        exam = summary.items[3]
        assert (exam.submitted_count, exam.graded_count) == (0, 1)

    def test_course_without_students(
        self,
        course_factory: t.Callable[..., Course],
        module_factory: t.Callable[..., Module],
        item_factory: t.Callable[..., t.Any],
        instructor: User,
        db_session: Session,
    ) -> None:
        course = course_factory(title="Empty seminar")
        item_factory(module_factory(course), "Paper", ContentType.Assignment)

        with db_session.begin():
            (summary,) = gradebook.get_grading_summary(instructor.user_id, session=db_session)

        (item,) = summary.items
        assert (item.total_enrolled, item.submitted_count, item.graded_count) == (0, 0, 0)
        assert item.submission_rate == 0.0

    def test_unenrolled_students_are_not_counted(self, triaged: Classroom, db_session: Session) -> None:
        with db_session.begin():
            enrollment_storage.unenroll(
                course_id=triaged.course.course_id, student_id=triaged.students[0].user_id, session=db_session
            )

        with db_session.begin():
            (summary,) = gradebook.get_grading_summary(triaged.instructor.user_id, session=db_session)

        essay = summary.items[2]
        assert (essay.total_enrolled, essay.submitted_count, essay.graded_count) == (2, 1, 0)

    def test_other_instructors_courses_are_excluded(
        self,
        classroom: Classroom,
        user_factory: t.Callable[..., User],
        db_session: Session,
    ) -> None:
        other = user_factory(name="Barbara Liskov")

        with db_session.begin():
            assert gradebook.get_grading_summary(other.user_id, session=db_session) == []


class TestItemQueue(object):
    """Tests for get_item_queue()."""

    def test_triage(self, triaged: Classroom, db_session: Session) -> None:
        first, second, third = triaged.students

        with db_session.begin():
            queue = gradebook.get_item_queue(triaged.assignment.content_item_id, session=db_session)

        assert queue.course_id == triaged.course.course_id
        assert [d.student.user_id for d in queue.not_submitted] == [third.user_id]
        assert [d.student.user_id for d in queue.needs_grading] == [second.user_id]
        assert [d.student.user_id for d in queue.graded] == [first.user_id]

        (waiting,) = queue.needs_grading
        assert waiting.submission is not None
        assert waiting.grade is not None and waiting.grade.status is GradeStatus.PendingReview
        assert queue.graded[0].grade is not None and queue.graded[0].grade.score == 88
        assert queue.not_submitted[0].submission is None

    def test_latest_submission_is_shown(
        self,
        workflow: GradingWorkflow,
        classroom: Classroom,
        db_session: Session,
    ) -> None:
        submit(workflow, classroom, classroom.student, db_session)
        workflow.record_submission(
            AssignmentIntake(
                student_id=classroom.student.user_id,
                course_id=classroom.course.course_id,
                content_item_id=classroom.assignment.content_item_id,
                text_content="second draft",
            ),
            session=db_session,
        )

        with db_session.begin():
            queue = gradebook.get_item_queue(classroom.assignment.content_item_id, session=db_session)

        (waiting,) = queue.needs_grading
        assert waiting.submission is not None
        assert getattr(waiting.submission, "text_content") == "second draft"

    def test_not_gradable(self, classroom: Classroom, db_session: Session) -> None:
        with db_session.begin(), pytest.raises(UnknownContentItemError):
            gradebook.get_item_queue(classroom.lesson.content_item_id, session=db_session)


class TestSubmissionDetails(object):
    """Tests for get_submission_details()."""

    def test_quiz_carries_its_questions(
        self,
        workflow: GradingWorkflow,
        classroom: Classroom,
        db_session: Session,
    ) -> None:
        tf, _, essay = classroom.questions
        submission, grade = workflow.record_submission(
            QuizIntake(
                student_id=classroom.student.user_id,
                course_id=classroom.course.course_id,
                content_item_id=classroom.manual_quiz.content_item_id,
                answers={str(tf.question_id): True, str(essay.question_id): "It converges to a normal."},
            ),
            session=db_session,
        )

        with db_session.begin():
            details = gradebook.get_submission_details(submission.submission_id, session=db_session)

        assert details.submission.submission_id == submission.submission_id
        assert [q.question_id for q in details.questions] == [tf.question_id, essay.question_id]
        assert details.rubric is None
        assert details.grade is not None and details.grade.grade_id == grade.grade_id

    def test_assignment_carries_its_rubric(
        self,
        workflow: GradingWorkflow,
        classroom: Classroom,
        db_session: Session,
    ) -> None:
        submit(workflow, classroom, classroom.student, db_session)
        with db_session.begin():
            (submission,) = submission_storage.find(
                content_item_id=classroom.assignment.content_item_id, session=db_session
            )
            details = gradebook.get_submission_details(submission.submission_id, session=db_session)

        assert details.questions == []
        assert details.rubric is not None and details.rubric.rubric_id == classroom.rubric.rubric_id
        assert details.grade is not None and details.grade.status is GradeStatus.PendingReview

    def test_unknown_submission(self, db_session: Session) -> None:
        with db_session.begin(), pytest.raises(UnknownSubmissionError):
            gradebook.get_submission_details(SubmissionID(), session=db_session)


class TestGradeMatrix(object):
    """Tests for get_course_grade_matrix()."""

    def test_rows_and_columns(
        self,
        workflow: GradingWorkflow,
        triaged: Classroom,
        db_session: Session,
    ) -> None:
        score(workflow, triaged, triaged.students[2], triaged.exam.content_item_id, 55, db_session)

        with db_session.begin():
            matrix = gradebook.get_course_grade_matrix(triaged.course.course_id, session=db_session)

        assert matrix.is_locked is False
        assert [i.content_item_id for i in matrix.gradable_items] == [
            triaged.quiz.content_item_id,
            triaged.manual_quiz.content_item_id,
            triaged.assignment.content_item_id,
            triaged.exam.content_item_id,
        ]
        assert [r.student_id for r in matrix.rows] == [s.user_id for s in triaged.students]
        assert [r.student_name for r in matrix.rows] == ["Grace Hopper", "Alan Turing", "Edsger Dijkstra"]

        first, second, third = matrix.rows
        essay = triaged.assignment.content_item_id
        assert first.cells[essay] is not None and first.cells[essay].score == 88
        assert second.cells[essay] is not None and second.cells[essay].status is GradeStatus.PendingReview
        assert third.cells[essay] is None
        assert third.cells[triaged.exam.content_item_id].score == 55  # type: ignore[union-attr]
        assert first.cells[triaged.quiz.content_item_id] is None

    def test_unknown_course(self, db_session: Session) -> None:
        with db_session.begin(), pytest.raises(UnknownCourseError):
            gradebook.get_course_grade_matrix(CourseID(), session=db_session)


class TestStudentGrades(object):
    """Tests for get_student_grades()."""

    def test_lines(self, workflow: GradingWorkflow, triaged: Classroom, db_session: Session) -> None:
        grade = workflow.get_grade(
            student_id=triaged.student.user_id,
            content_item_id=triaged.assignment.content_item_id,
            session=db_session,
        )
        assert grade is not None
        workflow.file_dispute(
            grade_id=grade.grade_id, student_id=triaged.student.user_id, reason="Page 2", session=db_session
        )

        with db_session.begin():
            lines = gradebook.get_student_grades(
                triaged.student.user_id, triaged.course.course_id, session=db_session
            )

        assert [line.title for line in lines] == ["Quiz 1", "Reflection quiz", "Essay", "Midterm"]
        quiz, _, essay, exam = lines
        assert (quiz.score, quiz.status) == (None, None)
        assert (essay.score, essay.status, essay.is_disputed) == (88, GradeStatus.Graded, True)
        assert essay.submission_id is not None
        assert exam.type is ContentType.Examination

    def test_other_students_grades_are_not_shown(self, triaged: Classroom, db_session: Session) -> None:
        with db_session.begin():
            lines = gradebook.get_student_grades(
                triaged.students[2].user_id, triaged.course.course_id, session=db_session
            )

        assert all(line.status is None for line in lines)

    def test_unknown_course(self, classroom: Classroom, db_session: Session) -> None:
        with db_session.begin(), pytest.raises(UnknownCourseError):
            gradebook.get_student_grades(classroom.student.user_id, CourseID(), session=db_session)
