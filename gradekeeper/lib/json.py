"""JSON encoding shared by the database's JSON columns and the log formatter.

``dumps``/``loads`` are what the SQLAlchemy engine uses for JSON columns
(rubric levels and criteria, question bodies, rubric feedback snapshots).
"""

from __future__ import annotations

import datetime
import enum
import json as pyjson
import typing as t

import pydantic as p

JSONPrimitive = str | int | float | bool | None
JSONValue = JSONPrimitive | list["JSONValue"] | dict[str, "JSONValue"]


def encode_datetime(obj: datetime.date) -> str:
    return obj.isoformat()


def encode_enum(obj: enum.Enum) -> t.Any:
    return obj.value


def encode_set(obj: set[t.Any] | frozenset[t.Any]) -> list[t.Any]:
    return sorted(obj, key=str)


class JSONEncoder(pyjson.JSONEncoder):
    """Encoder that also understands models, enums, timestamps and sets."""

    def get_encoders(self) -> dict[type, t.Callable[[t.Any], JSONValue]]:
        # datetime.datetime is a datetime.date
        return {
            datetime.date: encode_datetime,
            enum.Enum: encode_enum,
            set: encode_set,
            frozenset: encode_set,
        }

    def default(self, o: t.Any) -> JSONValue:
        if isinstance(o, p.BaseModel):
            return o.model_dump(mode="json")

        for tp, encode in self.get_encoders().items():
            if isinstance(o, tp):
                return encode(o)
        return super().default(o)


def dumps(obj: t.Any, *, cls: type[pyjson.JSONEncoder] = JSONEncoder, **kw: t.Any) -> str:
    return pyjson.dumps(obj, cls=cls, **kw)


def loads(s: str | bytes | bytearray, **kw: t.Any) -> t.Any:
    return pyjson.loads(s, **kw)
