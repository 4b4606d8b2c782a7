from __future__ import annotations

__all__ = [
    "Closing",
    "Container",
    "Manage",
    "Provider",
    "Provide",
    "as_",
    "containers",
    "inject",
    "providers",
]

import typing as t

import dependency_injector.containers as containers
import dependency_injector.providers as providers
from dependency_injector.containers import Container
from dependency_injector.providers import Provider
from dependency_injector.wiring import ClassGetItemMeta, Closing, inject, Provide, TypeModifier

TAs = t.TypeVar("TAs")
T = t.TypeVar("T")


class Manage(object, metaclass=ClassGetItemMeta):
    """``Manage["storage.persistent.session"]`` injects a value and closes it when the caller is done"""

    def __new__(cls, provider: Provider[T] | Container | str):
        return Closing[Provide[provider]]

    @classmethod
    def __class_getitem__(cls, item: Provider[T] | Container | str):
        return cls(item)


def as_(type_: type[TAs]) -> TypeModifier:
    """Coerce an injected configuration value into ``type_``."""
    return TypeModifier(type_)
