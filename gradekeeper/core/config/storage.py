from __future__ import annotations

import typing as t
from pathlib import Path

import pydantic as p

from .base import BaseSettings


class StorageSettings(BaseSettings):
    persistent: PersistentSettings
    streaming: StreamingSettings | None = None


class PersistentSettings(BaseSettings):
    """Exactly one of ``postgresql`` or ``sqlite`` is configured."""

    postgresql: PostgresqlSettings | None = None
    sqlite: SqliteSettings | None = None
    echo: bool = False

    @p.model_validator(mode="after")
    def _one_backend(self) -> t.Self:
        if (self.postgresql is None) == (self.sqlite is None):
            raise ValueError("configure exactly one of storage.persistent.postgresql or storage.persistent.sqlite")
        return self


class StreamingSettings(BaseSettings):
    redis: RedisSettings


class PostgresqlSettings(BaseSettings):
    host: p.IPvAnyAddress | str | None = None
    port: int = 5432
    database: str
    driver: t.Literal["postgresql+psycopg"] = "postgresql+psycopg"


class SqliteSettings(BaseSettings):
    path: Path
    # seconds a writer waits on a locked database file
    busy_timeout: float = 30.0
    driver: t.Literal["sqlite+pysqlite"] = "sqlite+pysqlite"


class RedisSettings(BaseSettings):
    """Redis connection settings; ``socket_path`` takes precedence over host/port."""

    socket_path: Path | None = None
    host: str = "localhost"
    port: int = 6379
    database: int = 0
