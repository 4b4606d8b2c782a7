"""Schema for ``logging.yaml``; a validated settings object dumps straight into ``dictConfig``."""

import pathlib
import typing as t

import pydantic as p

from .base import BaseSettings

# logging's own names plus the TRACE level registered by LoggingProvider
LogLevel = t.Literal["NOTSET", "TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class ExtraFormatterSettings(BaseSettings):
    factory: t.Literal["gradekeeper.lib.logging.ExtraFormatter"] = p.Field(alias="()")
    base: str = "colorlog.ColoredFormatter"
    format: str | None = None
    datefmt: str | None = None
    log_colors: dict[str, str] = {}
    no_color: bool = False
    indent: bool = False


class ConsoleHandlerSettings(BaseSettings):
    handler: t.Literal["colorlog.StreamHandler"] = p.Field(alias="class")
    formatter: str
    level: LogLevel = "NOTSET"
    stream: str = "ext://sys.stderr"


class FileHandlerSettings(BaseSettings):
    """Grading audit trail written to disk, rotated by an external tool."""

    handler: t.Literal["logging.handlers.WatchedFileHandler"] = p.Field(alias="class")
    formatter: str
    level: LogLevel = "NOTSET"
    filename: pathlib.Path


HandlerSettings = t.Annotated[ConsoleHandlerSettings | FileHandlerSettings, p.Field(discriminator="handler")]


class LoggerSettings(BaseSettings):
    level: LogLevel = "NOTSET"
    propagate: bool = True
    handlers: list[str] | None = None


class RootLoggerSettings(BaseSettings):
    handlers: list[str]
    level: LogLevel = "WARNING"


class LoggingSettings(BaseSettings):
    version: t.Literal[1] = 1
    disable_existing_loggers: bool = False
    formatters: dict[str, ExtraFormatterSettings]
    handlers: dict[str, HandlerSettings]
    root: RootLoggerSettings
    loggers: dict[str, LoggerSettings] = {}

    @p.model_validator(mode="after")
    def check_references(self) -> t.Self:
        for name, handler in self.handlers.items():
            if handler.formatter not in self.formatters:
                raise ValueError(f"handler {name!r} uses unknown formatter {handler.formatter!r}")

        used = [("root", h) for h in self.root.handlers]
        used += [(name, h) for name, lg in self.loggers.items() for h in lg.handlers or ()]
        for logger, handler in used:
            if handler not in self.handlers:
                raise ValueError(f"logger {logger!r} uses unknown handler {handler!r}")
        return self
