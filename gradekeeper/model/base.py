import datetime
import typing as t

import pydantic as p


class BaseModel(p.BaseModel):
    """Dumps by alias unless told otherwise.

    Storage rows and ``dictConfig`` both expect the aliased names, so this is the
    default here rather than something every caller has to remember.
    """

    def model_dump(self, *, by_alias: bool | None = True, **kwargs: t.Any) -> dict[str, t.Any]:
        return super().model_dump(by_alias=by_alias, **kwargs)


class FrozenModel(BaseModel):
    """Records which are never mutated after they are written (submissions, audit entries)."""

    model_config = p.ConfigDict(frozen=True)


class WithCtime(BaseModel):
    create_time: datetime.datetime


class WithMtime(BaseModel):
    update_time: datetime.datetime


# grades and courses: created once, touched on every write
class WithTimestamps(WithCtime, WithMtime): ...
