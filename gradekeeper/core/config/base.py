import typing as t

from pydantic_settings import BaseSettings as PydanticBaseSettings

from gradekeeper.model import BaseModel


class _DictInit(PydanticBaseSettings, BaseModel):  # pyright: ignore [reportIncompatibleVariableOverride]
    """Settings that can also be built from a plain dict, e.g. ``GradingSettings(ct.config.grading())``.

    ``model_dump`` comes from the model BaseModel, so aliased fields such as
    logging's ``()`` and ``class`` dump under the names dictConfig expects.
    """

    def __init__(self, cf: dict[str, t.Any] | None = None, **kwargs: t.Any):
        if cf is not None:
            kwargs = {**cf, **kwargs}
        super().__init__(**kwargs)


class BaseSettings(_DictInit):
    """Configuration sections read from YAML."""


class BaseSecrets(_DictInit):
    """Credentials, kept apart from configuration so they never land in logs."""
