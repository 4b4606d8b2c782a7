import datetime
import enum
import typing as t

from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.engine import Dialect
from sqlalchemy.sql.type_api import TypeDecorator
from sqlalchemy.types import DateTime, Enum, JSON, String

from gradekeeper.model.id import ShortUUIDKey


class ShortUUIDKeyType(TypeDecorator[ShortUUIDKey]):
    """Stores only the shortuuid part of a key; the prefix is implied by the column."""

    impl = String
    cache_ok = True

    def __init__(self, key_type: type[ShortUUIDKey]):
        self.key_type = key_type
        super().__init__(22)  # length of shortuuid

    def process_bind_param(self, value: ShortUUIDKey | str | None, dialect: Dialect) -> str | None:
        if value is None:
            return value
        if not isinstance(value, self.key_type):
            value = self.key_type(value)
        return value.key

    def process_result_value(self, value: str | None, dialect: Dialect) -> ShortUUIDKey | None:
        if value is not None:
            return self.key_type(key=value)
        return value


class UTCDateTime(TypeDecorator[datetime.datetime]):
    """
    Timezone-aware timestamps on every backend

    SQLite has no timestamp type and hands back naive values; those are read
    as UTC, which is what was written.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime.datetime | None, dialect: Dialect) -> datetime.datetime | None:
        if value is None:
            return value
        if value.tzinfo is None:
            raise ValueError(f"refusing to store naive datetime {value!r}")
        value = value.astimezone(datetime.UTC)
        if dialect.name == "sqlite":
            return value.replace(tzinfo=None)
        return value

    def process_result_value(self, value: datetime.datetime | None, dialect: Dialect) -> datetime.datetime | None:
        if value is None:
            return value
        if value.tzinfo is None:
            return value.replace(tzinfo=datetime.UTC)
        return value.astimezone(datetime.UTC)


def enum_values(en: type[enum.Enum]) -> list[t.Any]:
    return [e.value for e in en]


# mapped enums persist their values ("pending review"), not member names
ValueEnum = Enum(enum.Enum, values_callable=enum_values, native_enum=False, validate_strings=True)

JSONDocument = JSON().with_variant(JSONB(), "postgresql")
