"""Read models over the grade ledger: the course matrix, instructor summaries and triage queues.

Nothing here writes. Callers hold the (read) transaction, so one call sees one
consistent snapshot.
"""

from __future__ import annotations

import typing as t

from gradekeeper.core import di
from gradekeeper.model import ContentItem, ContentItemID, ContentItemRef, CourseGradingSummary, CourseID, \
    GradableItemSummary, Grade, GradeMatrix, GradeMatrixRow, GradeStatus, ItemQueue, Question, QuizSubmission, \
    StudentGradeLine, StudentSubmissionDetails, Submission, SubmissionDetails, SubmissionID, UserID, UserRef
from gradekeeper.storage import course as course_storage
from gradekeeper.storage import enrollment as enrollment_storage
from gradekeeper.storage import grade as grade_storage
from gradekeeper.storage import question as question_storage
from gradekeeper.storage import rubric as rubric_storage
from gradekeeper.storage import Session
from gradekeeper.storage import submission as submission_storage

from .errors import UnknownContentItemError, UnknownCourseError, UnknownSubmissionError


def _ref(item: ContentItem) -> ContentItemRef:
    return ContentItemRef(
        content_item_id=item.content_item_id,
        title=item.title,
        type=item.type,
        due_date=item.due_date,
    )


def get_course_grade_matrix(
    course_id: CourseID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> GradeMatrix:
    """Every enrolled student against every gradable item of a course.

    Rows follow enrollment order and columns follow module and item position.
    A cell is None when the student has no grade for the item.

    Raises:
        UnknownCourseError: If there is no such course
    """
    course = course_storage.get(course_id, session=session)
    if course is None:
        raise UnknownCourseError(f"no course {course_id}", course_id=course_id)

    items = course_storage.find_content_items(course_id=course_id, gradable=True, session=session)
    students = enrollment_storage.find_students(course_id, session=session)
    grades = {(g.student_id, g.content_item_id): g for g in grade_storage.find(course_id=course_id, session=session)}

    rows = [
        GradeMatrixRow(
            student_id=student.user_id,
            student_name=student.name,
            cells={item.content_item_id: grades.get((student.user_id, item.content_item_id)) for item in items},
        )
        for student in students
    ]
    return GradeMatrix(
        course_id=course_id,
        is_locked=course.status.is_locked,
        gradable_items=[_ref(item) for item in items],
        rows=rows,
    )


def get_grading_summary(
    instructor_id: UserID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> list[CourseGradingSummary]:
    """Submitted and graded counts per gradable item, for each course the instructor teaches.

    Only enrolled students count: work by a student who has since left the
    course is ignored.
    """
    summaries = []
    for course in course_storage.find(instructor_id=instructor_id, session=session):
        enrolled = {s.user_id for s in enrollment_storage.find_students(course.course_id, session=session)}
        submitted: dict[ContentItemID, set[UserID]] = {}
        for submission in submission_storage.find(course_id=course.course_id, session=session):
            if submission.student_id in enrolled:
                submitted.setdefault(submission.content_item_id, set()).add(submission.student_id)
        graded: dict[ContentItemID, set[UserID]] = {}
        for grade in grade_storage.find(course_id=course.course_id, status=GradeStatus.Graded, session=session):
            if grade.student_id in enrolled:
                graded.setdefault(grade.content_item_id, set()).add(grade.student_id)

        items = []
        for item in course_storage.find_content_items(course_id=course.course_id, gradable=True, session=session):
            submitted_count = len(submitted.get(item.content_item_id, ()))
            items.append(
                GradableItemSummary(
                    **_ref(item).model_dump(),
                    total_enrolled=len(enrolled),
                    submitted_count=submitted_count,
                    graded_count=len(graded.get(item.content_item_id, ())),
                    submission_rate=submitted_count / len(enrolled) if enrolled else 0.0,
                )
            )
        summaries.append(
            CourseGradingSummary(
                course_id=course.course_id,
                course_title=course.title,
                is_locked=course.status.is_locked,
                items=items,
            )
        )
    return summaries


def get_item_queue(
    content_item_id: ContentItemID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> ItemQueue:
    """Split the enrolled students of a gradable item into not submitted, needs grading and graded.

    A graded grade always lands in ``graded``, even when the instructor scored
    it without a submission.

    Raises:
        UnknownContentItemError: If there is no such gradable item
    """
    item = course_storage.get_content_item(content_item_id, session=session)
    if item is None or not item.type.is_gradable:
        raise UnknownContentItemError(f"no gradable item {content_item_id}", content_item_id=content_item_id)

    latest: dict[UserID, Submission] = {}
    for submission in submission_storage.find(content_item_id=content_item_id, session=session):
        latest[submission.student_id] = submission  # oldest first, so the last one wins
    grades: dict[UserID, Grade] = {
        g.student_id: g for g in grade_storage.find(content_item_id=content_item_id, session=session)
    }

    queue = ItemQueue(item=_ref(item), course_id=item.course_id)
    for student in enrollment_storage.find_students(item.course_id, session=session):
        grade = grades.get(student.user_id)
        details = StudentSubmissionDetails(
            student=UserRef(user_id=student.user_id, name=student.name, avatar_url=student.avatar_url),
            submission=latest.get(student.user_id),
            grade=grade,
        )
        if grade is not None and grade.status is GradeStatus.Graded:
            queue.graded.append(details)
        elif details.submission is not None:
            queue.needs_grading.append(details)
        else:
            queue.not_submitted.append(details)
    return queue


def get_student_grades(
    student_id: UserID,
    course_id: CourseID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> list[StudentGradeLine]:
    """One line per gradable item of the course, as the student sees their grades.

    Raises:
        UnknownCourseError: If there is no such course
    """
    if course_storage.get(course_id, session=session) is None:
        raise UnknownCourseError(f"no course {course_id}", course_id=course_id)

    grades = {g.content_item_id: g for g in grade_storage.find(course_id=course_id, student_id=student_id, session=session)}
    lines = []
    for item in course_storage.find_content_items(course_id=course_id, gradable=True, session=session):
        line: dict[str, t.Any] = _ref(item).model_dump()
        if (grade := grades.get(item.content_item_id)) is not None:
            line.update(
                score=grade.score,
                status=grade.status,
                is_disputed=grade.is_disputed,
                can_resubmit=grade.can_resubmit,
                submission_id=grade.submission_id,
            )
        lines.append(StudentGradeLine(**line))
    return lines


def get_submission_details(
    submission_id: SubmissionID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> SubmissionDetails:
    """A submission with its current grade and what it is graded against.

    A quiz submission carries the quiz questions, in quiz order; any submission
    carries the item's rubric when it has one.

    Raises:
        UnknownSubmissionError: If there is no such submission
    """
    submission = submission_storage.get(submission_id, session=session)
    if submission is None:
        raise UnknownSubmissionError(f"no submission {submission_id}", submission_id=submission_id)

    item = course_storage.get_content_item(submission.content_item_id, session=session)
    assert item is not None
    questions: list[Question] = []
    if isinstance(submission, QuizSubmission):
        questions = list(question_storage.find(question_ids=item.question_ids, session=session))
    return SubmissionDetails(
        submission=submission,
        grade=grade_storage.get_for(
            student_id=submission.student_id, content_item_id=submission.content_item_id, session=session
        ),
        questions=questions,
        rubric=rubric_storage.get(item.rubric_id, session=session) if item.rubric_id else None,
    )
