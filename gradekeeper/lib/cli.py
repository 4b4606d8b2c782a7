from __future__ import annotations

import enum
import pathlib
import typing as t

import click
import pydantic as p
from click import *  # noqa: F401, F403 # pyright: ignore [reportWildcardImportFromLibrary]

# A thin wrapper around Click; `click.*` is re-exported so command modules
# only ever import `gradekeeper.lib.cli`, alongside the parameter types below.


class EnumType(click.ParamType):
    """specify click params to be members of an enum"""

    def __init__(self, enum: type[enum.Enum]):
        self.enum = enum
        self.name = enum.__name__

    @property
    def values(self) -> list[str]:
        return [e.value for e in self.enum]

    def convert(
        self, value: str | enum.Enum | None, param: click.Parameter | None, ctx: click.Context | None
    ) -> enum.Enum | None:
        if value is None or isinstance(value, self.enum):
            return value

        try:
            return self.enum(value)
        except ValueError:
            self.fail(f"valid {self.name} values are {self.values}", param, ctx)

    def __repr__(self) -> str:
        return self.name


class URIParamType(click.ParamType):
    """
    Accept URIs as parameters, promoting bare filesystem paths to ``file://``

    Arguments:

        - `file_ok`: (default `True`) accept a filesystem path
        - `dir_ok`: (default `False`) allow a `file://` URI naming a directory
        - `file_exists`: (default `True`) require the path of a `file://` URI
          to exist
    """

    name: str

    def __init__(self, file_ok: bool = True, dir_ok: bool = False, file_exists: bool = True):
        self.file_ok = file_ok
        self.dir_ok = dir_ok
        self.file_exists = file_exists
        self.name = "URI OR PATH" if file_ok else "URI"

    def convert(
        self, value: str | pathlib.Path | p.AnyUrl | None, param: click.Parameter | None, ctx: click.Context | None
    ) -> p.FileUrl | p.AnyUrl | None:
        if value is None or isinstance(value, p.AnyUrl):
            return value

        if isinstance(value, pathlib.Path) or "://" not in value:
            if not self.file_ok:
                self.fail("a filesystem path is not accepted here", param, ctx)
            path = pathlib.Path(value).absolute()
        else:
            u = p.AnyUrl(value)
            if u.scheme != "file":
                return u
            if not self.file_ok or u.path is None:
                self.fail("file URL not allowed", param, ctx)
            path = pathlib.Path(u.path)

        if self.file_exists:
            if not path.exists():
                self.fail(f"{value}: no such file or directory", param, ctx)
            if path.is_dir() and not self.dir_ok:
                self.fail("directory path not accepted", param, ctx)
        return p.FileUrl(f"file://{path}")


def split_override(_: click.Context, __: click.Parameter, value: t.Sequence[str]) -> tuple[str, ...]:
    """Validate ``-o key.path=value`` options."""
    for ov in value:
        if "=" not in ov:
            raise click.BadParameter(f"{ov!r} is not of the form key.path=value")
    return tuple(value)
