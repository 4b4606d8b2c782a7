from __future__ import annotations

import typing as t

import sqlalchemy as sqla

from gradekeeper.core import di
from gradekeeper.core.provider import utcnow
from gradekeeper.model import User, UserID, UserRole

from . import Session
from .table import users


def get(user_id: UserID, *, session: Session = di.Provide["storage.persistent.session"]) -> User | None:
    stmt = sqla.select(users.__table__).where(users.user_id == user_id)
    row = session.execute(stmt).mappings().one_or_none()
    return User(**row) if row else None


def find(
    *,
    user_ids: t.Collection[UserID] | None = None,
    role: UserRole | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[User, ...]:
    stmt = sqla.select(users.__table__).order_by(users.name)
    if user_ids is not None:
        stmt = stmt.where(users.user_id.in_(list(user_ids)))
    if role is not None:
        stmt = stmt.where(users.role == role)
    rows = session.execute(stmt).mappings().all()
    return tuple(User(**row) for row in rows)


def create(
    *,
    name: str,
    email: str,
    role: UserRole = UserRole.Student,
    avatar_url: str | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> User:
    user_id = UserID()
    session.execute(
        sqla.insert(users).values(
            user_id=user_id,
            name=name,
            email=email,
            role=role,
            avatar_url=avatar_url,
            create_time=utcnow(),
        )
    )
    session.flush()
    result = get(user_id, session=session)
    assert result is not None
    return result
