"""Initial schema for the grading ledger

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19

"""

import typing as t

from alembic import op
from sqlalchemy.schema import Column, ForeignKey, UniqueConstraint
from sqlalchemy.types import Boolean, DateTime, Integer, String, Text

from gradekeeper.storage.type import JSONDocument

# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: str | None = None
branch_labels: str | t.Sequence[str] | None = None
depends_on: str | t.Sequence[str] | None = None

Key = String(22)
Timestamp = DateTime(timezone=True)


def upgrade() -> None:
    # Users & enrollment
    op.create_table(
        "users",
        Column("user_id", Key, primary_key=True),
        Column("name", String, nullable=False),
        Column("email", String, unique=True, nullable=False),
        Column("role", String(10), nullable=False),
        Column("avatar_url", String, nullable=True),
        Column("create_time", Timestamp, nullable=False),
    )

    op.create_table(
        "courses",
        Column("course_id", Key, primary_key=True),
        Column("instructor_id", Key, ForeignKey("users.user_id"), nullable=False, index=True),
        Column("title", String, nullable=False),
        Column("status", String(9), nullable=False),
        Column("create_time", Timestamp, nullable=False),
        Column("update_time", Timestamp, nullable=False),
    )

    op.create_table(
        "enrollments",
        Column("enrollment_id", Integer, primary_key=True, autoincrement=True),
        Column("course_id", Key, ForeignKey("courses.course_id"), nullable=False),
        Column("student_id", Key, ForeignKey("users.user_id"), nullable=False),
        Column("create_time", Timestamp, nullable=False),
        UniqueConstraint("course_id", "student_id"),
    )

    # Course catalog
    op.create_table(
        "modules",
        Column("module_id", Key, primary_key=True),
        Column("course_id", Key, ForeignKey("courses.course_id"), nullable=False, index=True),
        Column("title", String, nullable=False),
        Column("position", Integer, nullable=False),
    )

    op.create_table(
        "rubrics",
        Column("rubric_id", Key, primary_key=True),
        Column("instructor_id", Key, ForeignKey("users.user_id"), nullable=False),
        Column("title", String, nullable=False),
        Column("levels", JSONDocument, nullable=False),
        Column("criteria", JSONDocument, nullable=False),
        Column("create_time", Timestamp, nullable=False),
        Column("update_time", Timestamp, nullable=False),
    )

    op.create_table(
        "content_items",
        Column("content_item_id", Key, primary_key=True),
        Column("course_id", Key, ForeignKey("courses.course_id"), nullable=False, index=True),
        Column("module_id", Key, ForeignKey("modules.module_id"), nullable=False),
        Column("title", String, nullable=False),
        Column("type", String(11), nullable=False),
        Column("position", Integer, nullable=False),
        Column("rubric_id", Key, ForeignKey("rubrics.rubric_id"), nullable=True),
        Column("question_ids", JSONDocument, nullable=False),
        Column("attempts_limit", Integer, nullable=True),
        Column("due_date", Timestamp, nullable=True),
    )

    op.create_table(
        "questions",
        Column("question_id", Key, primary_key=True),
        Column("instructor_id", Key, ForeignKey("users.user_id"), nullable=False),
        Column("body", JSONDocument, nullable=False),
    )

    # Grading
    op.create_table(
        "submissions",
        Column("submission_id", Key, primary_key=True),
        Column("type", String(10), nullable=False),
        Column("student_id", Key, ForeignKey("users.user_id"), nullable=False),
        Column("course_id", Key, ForeignKey("courses.course_id"), nullable=False),
        Column("content_item_id", Key, ForeignKey("content_items.content_item_id"), nullable=False),
        Column("submitted_at", Timestamp, nullable=False),
        Column("attempt_number", Integer, nullable=True),
        Column("answers", JSONDocument, nullable=True),
        Column("file", JSONDocument, nullable=True),
        Column("text_content", Text, nullable=True),
    )
    op.create_index(
        "ix_submissions_student_id_content_item_id", "submissions", ["student_id", "content_item_id"]
    )

    op.create_table(
        "grades",
        Column("grade_id", Key, primary_key=True),
        Column("student_id", Key, ForeignKey("users.user_id"), nullable=False),
        Column("course_id", Key, ForeignKey("courses.course_id"), nullable=False, index=True),
        Column("content_item_id", Key, ForeignKey("content_items.content_item_id"), nullable=False, index=True),
        Column("status", String(14), nullable=False),
        Column("score", Integer, nullable=True),
        Column("submission_id", Key, ForeignKey("submissions.submission_id"), nullable=True),
        Column("feedback", Text, nullable=True),
        Column("rubric_feedback", JSONDocument, nullable=True),
        Column("is_disputed", Boolean, nullable=False),
        Column("dispute_id", Key, nullable=True),
        Column("can_resubmit", Boolean, nullable=False),
        Column("revision", Integer, nullable=False),
        Column("create_time", Timestamp, nullable=False),
        Column("update_time", Timestamp, nullable=False),
        UniqueConstraint("student_id", "content_item_id"),
    )

    op.create_table(
        "grade_history",
        Column("entry_id", Key, primary_key=True),
        Column("grade_id", Key, ForeignKey("grades.grade_id"), nullable=False),
        Column("sequence", Integer, nullable=False),
        Column("timestamp", Timestamp, nullable=False),
        Column("modifier_name", String, nullable=False),
        Column("old_score", Integer, nullable=True),
        Column("new_score", Integer, nullable=False),
        Column("reason", Text, nullable=False),
        UniqueConstraint("grade_id", "sequence"),
    )

    op.create_table(
        "grade_disputes",
        Column("dispute_id", Key, primary_key=True),
        Column("grade_id", Key, ForeignKey("grades.grade_id"), nullable=False, index=True),
        Column("student_id", Key, ForeignKey("users.user_id"), nullable=False),
        Column("student_reason", Text, nullable=False),
        Column("status", String(8), nullable=False),
        Column("resolution_comment", Text, nullable=True),
        Column("resolved_score", Integer, nullable=True),
        Column("resolver_name", String, nullable=True),
        Column("create_time", Timestamp, nullable=False),
        Column("resolve_time", Timestamp, nullable=True),
    )

    op.create_table(
        "grade_operations",
        Column("operation_id", String, primary_key=True),
        Column("grade_id", Key, ForeignKey("grades.grade_id"), nullable=False),
        Column("kind", String, nullable=False),
        Column("target", String, nullable=False),
        Column("create_time", Timestamp, nullable=False),
    )


def downgrade() -> None:
    op.drop_table("grade_operations")
    op.drop_table("grade_disputes")
    op.drop_table("grade_history")
    op.drop_table("grades")
    op.drop_index("ix_submissions_student_id_content_item_id", table_name="submissions")
    op.drop_table("submissions")
    op.drop_table("questions")
    op.drop_table("content_items")
    op.drop_table("rubrics")
    op.drop_table("modules")
    op.drop_table("enrollments")
    op.drop_table("courses")
    op.drop_table("users")
