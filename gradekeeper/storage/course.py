from __future__ import annotations

import datetime
import typing as t

import sqlalchemy as sqla

from gradekeeper.core import di
from gradekeeper.core.provider import utcnow
from gradekeeper.lib import NotSet
from gradekeeper.model import ContentItem, ContentItemID, ContentType, Course, CourseID, CourseStatus, \
    CourseWithModules, GradableContentTypes, Module, ModuleID, QuestionID, RubricID, UserID

from . import Session
from .table import content_items, courses, modules


def get(
    course_id: CourseID,
    *,
    for_update: bool = False,
    session: Session = di.Provide["storage.persistent.session"],
) -> Course | None:
    """Get a course.

    With ``for_update`` the row is locked until the transaction ends
    (``SELECT ... FOR UPDATE``; ignored by SQLite, which locks the whole
    database on write).
    """
    stmt = sqla.select(courses.__table__).where(courses.course_id == course_id)
    if for_update:
        stmt = stmt.with_for_update()
    row = session.execute(stmt).mappings().one_or_none()
    return Course(**row) if row else None


def get_with_modules(
    course_id: CourseID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> CourseWithModules | None:
    course = get(course_id, session=session)
    if course is None:
        return None

    items = find_content_items(course_id=course_id, session=session)
    stmt = (
        sqla
        .select(modules.__table__)
        .where(modules.course_id == course_id)
        .order_by(modules.position, modules.module_id)
    )
    mods = [
        Module(**row, items=[item for item in items if item.module_id == row["module_id"]])
        for row in session.execute(stmt).mappings().all()
    ]
    return CourseWithModules(**course.model_dump(), modules=mods)


def find(
    *,
    instructor_id: UserID | None = None,
    course_ids: t.Collection[CourseID] | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[Course, ...]:
    stmt = sqla.select(courses.__table__).order_by(courses.create_time, courses.course_id)
    if instructor_id is not None:
        stmt = stmt.where(courses.instructor_id == instructor_id)
    if course_ids is not None:
        stmt = stmt.where(courses.course_id.in_(list(course_ids)))
    rows = session.execute(stmt).mappings().all()
    return tuple(Course(**row) for row in rows)


def create(
    *,
    instructor_id: UserID,
    title: str,
    status: CourseStatus = CourseStatus.Published,
    session: Session = di.Provide["storage.persistent.session"],
) -> Course:
    course_id = CourseID()
    now = utcnow()
    session.execute(
        sqla.insert(courses).values(
            course_id=course_id,
            instructor_id=instructor_id,
            title=title,
            status=status,
            create_time=now,
            update_time=now,
        )
    )
    session.flush()
    result = get(course_id, session=session)
    assert result is not None
    return result


def update(
    course_id: CourseID,
    *,
    title: str | NotSet = NotSet(),
    status: CourseStatus | NotSet = NotSet(),
    update_time: datetime.datetime | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> None:
    """Update a course.

    Raises:
        KeyError: If course_id does not correspond to a course
    """
    values: dict[str, t.Any] = {"update_time": update_time or utcnow()}
    if not isinstance(title, NotSet):
        values["title"] = title
    if not isinstance(status, NotSet):
        values["status"] = status

    stmt = sqla.update(courses).where(courses.course_id == course_id).values(**values)
    result = session.execute(stmt)
    if result.rowcount == 0:  # pyright: ignore[reportAttributeAccessIssue]
        raise KeyError(f"Course {course_id} not found")
    session.flush()


def create_module(
    *,
    course_id: CourseID,
    title: str,
    position: int = 0,
    session: Session = di.Provide["storage.persistent.session"],
) -> Module:
    module_id = ModuleID()
    session.execute(
        sqla.insert(modules).values(module_id=module_id, course_id=course_id, title=title, position=position)
    )
    session.flush()
    return Module(module_id=module_id, course_id=course_id, title=title, position=position)


def get_content_item(
    content_item_id: ContentItemID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> ContentItem | None:
    stmt = sqla.select(content_items.__table__).where(content_items.content_item_id == content_item_id)
    row = session.execute(stmt).mappings().one_or_none()
    return ContentItem(**row) if row else None


def find_content_items(
    *,
    course_id: CourseID | None = None,
    gradable: bool | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[ContentItem, ...]:
    """Content items in course order: by module position, then item position."""
    stmt = (
        sqla
        .select(content_items.__table__)
        .join(modules, modules.module_id == content_items.module_id)
        .order_by(modules.position, modules.module_id, content_items.position, content_items.content_item_id)
    )
    if course_id is not None:
        stmt = stmt.where(content_items.course_id == course_id)
    if gradable is not None:
        types = list(GradableContentTypes)
        clause = content_items.type.in_(types)
        stmt = stmt.where(clause if gradable else sqla.not_(clause))
    rows = session.execute(stmt).mappings().all()
    return tuple(ContentItem(**row) for row in rows)


def create_content_item(
    *,
    module: Module,
    title: str,
    type: ContentType,
    position: int = 0,
    rubric_id: RubricID | None = None,
    question_ids: t.Sequence[QuestionID] = (),
    attempts_limit: int | None = None,
    due_date: datetime.datetime | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> ContentItem:
    content_item_id = ContentItemID()
    session.execute(
        sqla.insert(content_items).values(
            content_item_id=content_item_id,
            course_id=module.course_id,
            module_id=module.module_id,
            title=title,
            type=type,
            position=position,
            rubric_id=rubric_id,
            question_ids=[str(q) for q in question_ids],
            attempts_limit=attempts_limit,
            due_date=due_date,
        )
    )
    session.flush()
    result = get_content_item(content_item_id, session=session)
    assert result is not None
    return result
