import datetime
import enum
import typing as t

from sqlalchemy import ForeignKey, Index, MetaData, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, MappedAsDataclass
from sqlalchemy.types import Integer

from gradekeeper.model import ContentItemID, CourseID, CourseStatus, ContentType, DisputeID, DisputeStatus, \
    GradeHistoryEntryID, GradeID, GradeStatus, ModuleID, QuestionID, RubricID, SubmissionID, SubmissionType, \
    UserID, UserRole

from .type import JSONDocument, ShortUUIDKeyType, UTCDateTime, ValueEnum

metadata = MetaData(
    naming_convention={
        "ix": "ix_%(table_name)s_%(column_0_N_name)s",
        "uq": "uq_%(table_name)s_%(column_0_N_name)s",
        "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
        "pk": "pk_%(table_name)s",
    }
)


class base(MappedAsDataclass, DeclarativeBase):
    metadata = metadata
    type_annotation_map = {
        UserID: ShortUUIDKeyType(UserID),
        CourseID: ShortUUIDKeyType(CourseID),
        ModuleID: ShortUUIDKeyType(ModuleID),
        ContentItemID: ShortUUIDKeyType(ContentItemID),
        QuestionID: ShortUUIDKeyType(QuestionID),
        RubricID: ShortUUIDKeyType(RubricID),
        SubmissionID: ShortUUIDKeyType(SubmissionID),
        GradeID: ShortUUIDKeyType(GradeID),
        GradeHistoryEntryID: ShortUUIDKeyType(GradeHistoryEntryID),
        DisputeID: ShortUUIDKeyType(DisputeID),
        datetime.datetime: UTCDateTime(),
        dict[str, t.Any]: JSONDocument,
        list[t.Any]: JSONDocument,
        enum.Enum: ValueEnum,
    }


# Users & enrollment


class users(base):
    __tablename__ = "users"

    user_id: Mapped[UserID] = mapped_column(primary_key=True)
    name: Mapped[str]
    email: Mapped[str] = mapped_column(unique=True)
    role: Mapped[UserRole]
    create_time: Mapped[datetime.datetime]
    avatar_url: Mapped[str | None] = mapped_column(default=None)


class enrollments(base):
    __tablename__ = "enrollments"
    __table_args__ = (UniqueConstraint("course_id", "student_id"),)

    # insertion order is enrollment order
    enrollment_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True, init=False)
    course_id: Mapped[CourseID] = mapped_column(ForeignKey("courses.course_id"))
    student_id: Mapped[UserID] = mapped_column(ForeignKey("users.user_id"))
    create_time: Mapped[datetime.datetime]


# Course catalog


class courses(base):
    __tablename__ = "courses"

    course_id: Mapped[CourseID] = mapped_column(primary_key=True)
    instructor_id: Mapped[UserID] = mapped_column(ForeignKey("users.user_id"), index=True)
    title: Mapped[str]
    status: Mapped[CourseStatus]
    create_time: Mapped[datetime.datetime]
    update_time: Mapped[datetime.datetime]


class modules(base):
    __tablename__ = "modules"

    module_id: Mapped[ModuleID] = mapped_column(primary_key=True)
    course_id: Mapped[CourseID] = mapped_column(ForeignKey("courses.course_id"), index=True)
    title: Mapped[str]
    position: Mapped[int] = mapped_column(default=0)


class content_items(base):
    __tablename__ = "content_items"

    content_item_id: Mapped[ContentItemID] = mapped_column(primary_key=True)
    course_id: Mapped[CourseID] = mapped_column(ForeignKey("courses.course_id"), index=True)
    module_id: Mapped[ModuleID] = mapped_column(ForeignKey("modules.module_id"))
    title: Mapped[str]
    type: Mapped[ContentType]
    position: Mapped[int] = mapped_column(default=0)
    rubric_id: Mapped[RubricID | None] = mapped_column(ForeignKey("rubrics.rubric_id"), default=None)
    question_ids: Mapped[list[t.Any]] = mapped_column(default_factory=list)
    attempts_limit: Mapped[int | None] = mapped_column(default=None)
    due_date: Mapped[datetime.datetime | None] = mapped_column(default=None)


class questions(base):
    __tablename__ = "questions"

    question_id: Mapped[QuestionID] = mapped_column(primary_key=True)
    instructor_id: Mapped[UserID] = mapped_column(ForeignKey("users.user_id"))
    # the variant's own fields (options, correct answers, ...) as one document
    body: Mapped[dict[str, t.Any]]


class rubrics(base):
    __tablename__ = "rubrics"

    rubric_id: Mapped[RubricID] = mapped_column(primary_key=True)
    instructor_id: Mapped[UserID] = mapped_column(ForeignKey("users.user_id"))
    title: Mapped[str]
    levels: Mapped[list[t.Any]]
    criteria: Mapped[list[t.Any]]
    create_time: Mapped[datetime.datetime]
    update_time: Mapped[datetime.datetime]


# Grading


class submissions(base):
    __tablename__ = "submissions"
    __table_args__ = (Index(None, "student_id", "content_item_id"),)

    submission_id: Mapped[SubmissionID] = mapped_column(primary_key=True)
    type: Mapped[SubmissionType]
    student_id: Mapped[UserID] = mapped_column(ForeignKey("users.user_id"))
    course_id: Mapped[CourseID] = mapped_column(ForeignKey("courses.course_id"))
    content_item_id: Mapped[ContentItemID] = mapped_column(ForeignKey("content_items.content_item_id"))
    submitted_at: Mapped[datetime.datetime]
    attempt_number: Mapped[int | None] = mapped_column(default=None)
    answers: Mapped[dict[str, t.Any] | None] = mapped_column(default=None)
    file: Mapped[dict[str, t.Any] | None] = mapped_column(default=None)
    text_content: Mapped[str | None] = mapped_column(default=None)


class grades(base):
    __tablename__ = "grades"
    __table_args__ = (UniqueConstraint("student_id", "content_item_id"),)

    grade_id: Mapped[GradeID] = mapped_column(primary_key=True)
    student_id: Mapped[UserID] = mapped_column(ForeignKey("users.user_id"))
    course_id: Mapped[CourseID] = mapped_column(ForeignKey("courses.course_id"), index=True)
    content_item_id: Mapped[ContentItemID] = mapped_column(ForeignKey("content_items.content_item_id"), index=True)
    status: Mapped[GradeStatus]
    create_time: Mapped[datetime.datetime]
    update_time: Mapped[datetime.datetime]
    score: Mapped[int | None] = mapped_column(default=None)
    submission_id: Mapped[SubmissionID | None] = mapped_column(ForeignKey("submissions.submission_id"), default=None)
    feedback: Mapped[str | None] = mapped_column(default=None)
    rubric_feedback: Mapped[dict[str, t.Any] | None] = mapped_column(default=None)
    is_disputed: Mapped[bool] = mapped_column(default=False)
    dispute_id: Mapped[DisputeID | None] = mapped_column(default=None)
    can_resubmit: Mapped[bool] = mapped_column(default=False)
    revision: Mapped[int] = mapped_column(default=0)


class grade_history(base):
    __tablename__ = "grade_history"
    __table_args__ = (UniqueConstraint("grade_id", "sequence"),)

    entry_id: Mapped[GradeHistoryEntryID] = mapped_column(primary_key=True)
    grade_id: Mapped[GradeID] = mapped_column(ForeignKey("grades.grade_id"))
    sequence: Mapped[int]
    timestamp: Mapped[datetime.datetime]
    modifier_name: Mapped[str]
    new_score: Mapped[int]
    reason: Mapped[str]
    old_score: Mapped[int | None] = mapped_column(default=None)


class grade_disputes(base):
    __tablename__ = "grade_disputes"

    dispute_id: Mapped[DisputeID] = mapped_column(primary_key=True)
    grade_id: Mapped[GradeID] = mapped_column(ForeignKey("grades.grade_id"), index=True)
    student_id: Mapped[UserID] = mapped_column(ForeignKey("users.user_id"))
    student_reason: Mapped[str]
    status: Mapped[DisputeStatus]
    create_time: Mapped[datetime.datetime]
    resolution_comment: Mapped[str | None] = mapped_column(default=None)
    resolved_score: Mapped[int | None] = mapped_column(default=None)
    resolver_name: Mapped[str | None] = mapped_column(default=None)
    resolve_time: Mapped[datetime.datetime | None] = mapped_column(default=None)


class grade_operations(base):
    """Client operation ids already applied, with the kind of write and what it addressed."""

    __tablename__ = "grade_operations"

    operation_id: Mapped[str] = mapped_column(primary_key=True)
    grade_id: Mapped[GradeID] = mapped_column(ForeignKey("grades.grade_id"))
    kind: Mapped[str]
    target: Mapped[str]
    create_time: Mapped[datetime.datetime]
