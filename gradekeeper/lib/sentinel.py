from __future__ import annotations

import typing as t


class _Singleton(object):
    _instance: t.ClassVar[t.Any] = None

    def __new__(cls) -> t.Self:
        if cls.__dict__.get("_instance") is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return f"<{self.__class__.__name__}>"

    def __bool__(self) -> bool:
        return False


class NotReady(_Singleton):
    """Placeholder for container values that are only known after boot."""


class NotSet(_Singleton):
    """Marks a keyword argument the caller did not pass, as distinct from ``None``."""
