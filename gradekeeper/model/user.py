import enum

from .base import BaseModel, WithCtime
from .id import UserID


class UserRole(enum.Enum):
    Student = "student"
    Instructor = "instructor"
    Admin = "admin"


class User(WithCtime):
    user_id: UserID
    name: str
    email: str
    role: UserRole
    avatar_url: str | None = None


class UserRef(BaseModel):
    """The slice of a user shown next to grades and submissions."""

    user_id: UserID
    name: str
    avatar_url: str | None = None
