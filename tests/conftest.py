"""Pytest fixtures for Gradekeeper tests.

Storage and grading tests run against a fresh SQLite database file per test,
created from the table metadata. API tests share one booted container whose
engine provider is pointed at that same per-test database.

Usage:
    def test_scores(workflow: GradingWorkflow, classroom: Classroom, db_session: Session):
        grade = workflow.upsert_score(..., session=db_session)
"""

from __future__ import annotations

import datetime
import os
import typing as t
from pathlib import Path

import pydantic as p
import pytest
import sqlalchemy
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.engine.url import URL as DSN
from sqlalchemy.orm import Session

import gradekeeper
from gradekeeper.core import GradekeeperContainer, TimestampProvider
from gradekeeper.core.config import GradingSettings
from gradekeeper.core.container.storage import create_engine
from gradekeeper.grading import CourseLocks, GradingWorkflow
from gradekeeper.model import ContentItem, ContentType, Course, CourseStatus, DeploymentEnvironment, Module, \
    Question, Rubric, RubricCriterion, RubricLevel, User, UserRole
from gradekeeper.notify import InMemoryNotificationChannel
from gradekeeper.storage import course as course_storage
from gradekeeper.storage import enrollment as enrollment_storage
from gradekeeper.storage import question as question_storage
from gradekeeper.storage import rubric as rubric_storage
from gradekeeper.storage import user as user_storage
from gradekeeper.storage.table import metadata


@pytest.fixture(scope="session")
def container() -> t.Generator[GradekeeperContainer]:
    """Boot the DI container once for the test session, in the Test environment."""
    ct = GradekeeperContainer()
    root = Path(os.path.dirname(gradekeeper.__file__)).parent

    GradekeeperContainer.boot(
        ct,
        debug=True,
        env=DeploymentEnvironment.Test,
        config_root=p.FileUrl(f"file://{root}/config"),
        override=(),
    )

    yield ct

    ct.shutdown_resources()


@pytest.fixture
def engine(tmp_path: Path) -> t.Generator[sqlalchemy.Engine]:
    """A SQLite database file holding every table, private to one test."""
    engine = create_engine(DSN.create("sqlite+pysqlite", database=str(tmp_path / "gradekeeper.db")))
    metadata.create_all(engine)

    yield engine

    engine.dispose()


def new_session(engine: sqlalchemy.Engine) -> Session:
    """A session configured like the container's: no autobegin, callers open transactions."""
    return Session(engine, autobegin=False, expire_on_commit=False, autoflush=False)


@pytest.fixture
def db_session(engine: sqlalchemy.Engine) -> t.Generator[Session]:
    session = new_session(engine)

    yield session

    session.close()


@pytest.fixture
def session_factory(engine: sqlalchemy.Engine) -> t.Generator[t.Callable[[], Session]]:
    """Extra sessions on the test database, e.g. one per thread; all are closed afterwards."""
    opened: list[Session] = []

    def open_session() -> Session:
        session = new_session(engine)
        opened.append(session)
        return session

    yield open_session

    for session in opened:
        session.close()


@pytest.fixture
def utcnow() -> TimestampProvider:
    """Provide a timestamp provider for tests."""
    return lambda: datetime.datetime.now(datetime.UTC)


@pytest.fixture
def notifications() -> InMemoryNotificationChannel:
    return InMemoryNotificationChannel()


@pytest.fixture
def grading_settings() -> GradingSettings:
    return GradingSettings()


@pytest.fixture
def workflow(
    notifications: InMemoryNotificationChannel,
    grading_settings: GradingSettings,
    utcnow: TimestampProvider,
) -> GradingWorkflow:
    return GradingWorkflow(notifications, grading_settings, CourseLocks(), utcnow)


@pytest.fixture(scope="session")
def app(container: GradekeeperContainer) -> FastAPI:
    """Create the FastAPI application from the booted container."""
    from gradekeeper.core.config.web import GradebookWebSettings
    from gradekeeper.web.gradebook.main import _create_app  # pyright: ignore[reportPrivateUsage]

    return _create_app(
        config=GradebookWebSettings(**container.config.web.gradebook()),
        env=DeploymentEnvironment.Test,
        root_path=t.cast(Path, container.root()),
    )


@pytest.fixture
def client(
    app: FastAPI,
    container: GradekeeperContainer,
    engine: sqlalchemy.Engine,
    workflow: GradingWorkflow,
) -> t.Generator[TestClient]:
    """Provide a TestClient bound to the per-test database and workflow.

    Request sessions come from the container, whose engine is overridden for
    the duration of the test; the workflow dependency is swapped for the
    test's own so notifications can be inspected.
    """
    from gradekeeper.web.gradebook.dependencies import get_workflow

    container.storage().persistent().engine.override(engine)
    app.dependency_overrides[get_workflow] = lambda: workflow

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
    container.storage().persistent().engine.reset_override()


# Factories


@pytest.fixture
def user_factory(db_session: Session) -> t.Callable[..., User]:
    """Factory fixture for creating users; emails are made unique from the name."""
    counter = iter(range(1_000_000))

    def create_user(name: str = "Test Student", role: UserRole = UserRole.Student) -> User:
        email = f"{name.lower().replace(' ', '.')}.{next(counter)}@example.edu"
        with db_session.begin():
            return user_storage.create(name=name, email=email, role=role, session=db_session)

    return create_user


@pytest.fixture
def instructor(user_factory: t.Callable[..., User]) -> User:
    return user_factory(name="Ada Instructor", role=UserRole.Instructor)


@pytest.fixture
def course_factory(db_session: Session, instructor: User) -> t.Callable[..., Course]:
    def create_course(
        title: str = "Introduction to Statistics",
        status: CourseStatus = CourseStatus.Published,
        instructor_id: t.Any = None,
    ) -> Course:
        with db_session.begin():
            return course_storage.create(
                instructor_id=instructor_id or instructor.user_id,
                title=title,
                status=status,
                session=db_session,
            )

    return create_course


@pytest.fixture
def module_factory(db_session: Session) -> t.Callable[..., Module]:
    def create_module(course: Course, title: str = "Week 1", position: int = 0) -> Module:
        with db_session.begin():
            return course_storage.create_module(
                course_id=course.course_id, title=title, position=position, session=db_session
            )

    return create_module


@pytest.fixture
def item_factory(db_session: Session) -> t.Callable[..., ContentItem]:
    def create_item(module: Module, title: str, type: ContentType, **kwargs: t.Any) -> ContentItem:
        with db_session.begin():
            return course_storage.create_content_item(
                module=module, title=title, type=type, session=db_session, **kwargs
            )

    return create_item


@pytest.fixture
def question_factory(db_session: Session, instructor: User) -> t.Callable[..., Question]:
    """Create a question from its variant fields, e.g. ``question_factory(type="true-false", ...)``."""

    def create_question(**body: t.Any) -> Question:
        body.setdefault("stem", "Is the sample mean an unbiased estimator?")
        with db_session.begin():
            return question_storage.create(instructor_id=instructor.user_id, body=body, session=db_session)

    return create_question


@pytest.fixture
def rubric_factory(db_session: Session, instructor: User) -> t.Callable[..., Rubric]:
    def create_rubric(
        criteria: t.Sequence[RubricCriterion] | None = None,
        levels: t.Sequence[RubricLevel] | None = None,
        title: str = "Essay rubric",
    ) -> Rubric:
        if levels is None:
            levels = [
                RubricLevel(id="excellent", name="Excellent", points=4),
                RubricLevel(id="good", name="Good", points=3),
                RubricLevel(id="fair", name="Fair", points=2),
                RubricLevel(id="poor", name="Poor", points=0),
            ]
        if criteria is None:
            criteria = [
                RubricCriterion(id="thesis", description="Thesis", points=4),
                RubricCriterion(id="evidence", description="Evidence", points=4),
                RubricCriterion(id="style", description="Style", points=4),
            ]
        with db_session.begin():
            return rubric_storage.create(
                instructor_id=instructor.user_id,
                title=title,
                levels=levels,
                criteria=criteria,
                session=db_session,
            )

    return create_rubric


@pytest.fixture
def enroll(db_session: Session) -> t.Callable[[Course, User], None]:
    def enroll_student(course: Course, student: User) -> None:
        with db_session.begin():
            enrollment_storage.enroll(course_id=course.course_id, student_id=student.user_id, session=db_session)

    return enroll_student


class Classroom(t.NamedTuple):
    instructor: User
    course: Course
    students: tuple[User, ...]
    quiz: ContentItem
    manual_quiz: ContentItem
    assignment: ContentItem
    exam: ContentItem
    lesson: ContentItem
    rubric: Rubric
    questions: tuple[Question, ...]

    @property
    def student(self) -> User:
        return self.students[0]


@pytest.fixture
def classroom(
    instructor: User,
    user_factory: t.Callable[..., User],
    course_factory: t.Callable[..., Course],
    module_factory: t.Callable[..., Module],
    item_factory: t.Callable[..., ContentItem],
    question_factory: t.Callable[..., Question],
    rubric_factory: t.Callable[..., Rubric],
    enroll: t.Callable[[Course, User], None],
) -> Classroom:
    """A published course with three enrolled students and one item of every gradable kind.

    - ``quiz``: two auto-gradable questions, two attempts allowed
    - ``manual_quiz``: includes a free-text question, so it is graded by hand
    - ``assignment``: graded with ``rubric`` (three criteria worth 4 points each)
    - ``exam``: an examination without a rubric
    """
    course = course_factory()
    students = tuple(user_factory(name=name) for name in ("Grace Hopper", "Alan Turing", "Edsger Dijkstra"))
    for student in students:
        enroll(course, student)

    tf = question_factory(type="true-false", stem="The median is robust to outliers.", correct_answer=True)
    mc = question_factory(
        type="multiple-choice",
        stem="Which measure is most affected by outliers?",
        options=["median", "mean", "mode"],
        correct_answer_index=1,
    )
    essay = question_factory(type="short-answer", stem="Explain the central limit theorem.")
    rubric = rubric_factory()

    week1 = module_factory(course, title="Week 1", position=0)
    week2 = module_factory(course, title="Week 2", position=1)
    lesson = item_factory(week1, "Descriptive statistics", ContentType.Lesson, position=0)
    quiz = item_factory(
        week1, "Quiz 1", ContentType.Quiz, position=1, question_ids=[tf.question_id, mc.question_id], attempts_limit=2
    )
    manual_quiz = item_factory(week1, "Reflection quiz", ContentType.Quiz, position=2, question_ids=[tf.question_id, essay.question_id])
    assignment = item_factory(week2, "Essay", ContentType.Assignment, position=0, rubric_id=rubric.rubric_id)
    exam = item_factory(week2, "Midterm", ContentType.Examination, position=1)

    return Classroom(
        instructor=instructor,
        course=course,
        students=students,
        quiz=quiz,
        manual_quiz=manual_quiz,
        assignment=assignment,
        exam=exam,
        lesson=lesson,
        rubric=rubric,
        questions=(tf, mc, essay),
    )
