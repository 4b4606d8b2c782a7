from __future__ import annotations

import sqlalchemy as sqla

from gradekeeper.core import di
from gradekeeper.core.provider import utcnow
from gradekeeper.model import CourseID, User, UserID

from . import Session
from .table import enrollments, users


def enroll(
    *,
    course_id: CourseID,
    student_id: UserID,
    session: Session = di.Provide["storage.persistent.session"],
) -> bool:
    """Enroll a student; returns False if they already were."""
    if is_enrolled(course_id=course_id, student_id=student_id, session=session):
        return False
    session.execute(
        sqla.insert(enrollments).values(course_id=course_id, student_id=student_id, create_time=utcnow())
    )
    session.flush()
    return True


def unenroll(
    *,
    course_id: CourseID,
    student_id: UserID,
    session: Session = di.Provide["storage.persistent.session"],
) -> bool:
    """Drop a student from a course; their grades and submissions are kept. Returns False if they were not enrolled."""
    result = session.execute(
        sqla.delete(enrollments).where(enrollments.course_id == course_id, enrollments.student_id == student_id)
    )
    return bool(result.rowcount)


def is_enrolled(
    *,
    course_id: CourseID,
    student_id: UserID,
    session: Session = di.Provide["storage.persistent.session"],
) -> bool:
    stmt = sqla.select(sqla.literal(True)).where(
        enrollments.course_id == course_id,
        enrollments.student_id == student_id,
    )
    return session.execute(stmt).scalar_one_or_none() is not None


def find_students(
    course_id: CourseID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[User, ...]:
    """Students of a course in the order they enrolled."""
    stmt = (
        sqla
        .select(users.__table__)
        .join(enrollments, enrollments.student_id == users.user_id)
        .where(enrollments.course_id == course_id)
        .order_by(enrollments.enrollment_id)
    )
    rows = session.execute(stmt).mappings().all()
    return tuple(User(**row) for row in rows)


def find_courses(
    student_id: UserID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[CourseID, ...]:
    stmt = (
        sqla
        .select(enrollments.course_id)
        .where(enrollments.student_id == student_id)
        .order_by(enrollments.enrollment_id)
    )
    return tuple(session.execute(stmt).scalars().all())
