import importlib
import json
import logging
import string
import sys
import textwrap
import typing as t

import pygments
from pygments.formatters import Terminal256Formatter
from pygments.lexers.data import JsonLexer  # pyright: ignore [reportMissingTypeStubs]
from pygments.style import Style

from .json import JSONEncoder
from .style import LogStyle

ReservedKeys = frozenset({
    "args",
    "asctime",
    "color_message",
    "created",
    "exc_info",
    "exc_text",
    "exception",
    "filename",
    "funcName",
    "id",
    "levelname",
    "levelno",
    "lineno",
    "log_color",
    "message",
    "module",
    "msecs",
    "msg",
    "name",
    "pathname",
    "process",
    "processName",
    "relativeCreated",
    "stack_info",
    "taskName",
    "thread",
    "threadName",
})


class ExtraFormatter(logging.Formatter):
    """
    Wraps another formatter and appends the record's ``extra`` fields as JSON

    When the handler's stream is a terminal the JSON is highlighted with
    pygments. Multi-line messages are indented to line up under the first
    line.
    """

    def __init__(
        self,
        base: type[logging.Formatter] | str,
        format: str | None,
        datefmt: str | None = None,
        indent: bool = False,
        pyg_style: type[Style] = LogStyle,
        style: t.Literal["%", "{", "$"] = "%",
        validate: bool = True,
        *,
        defaults: t.Any = None,
        stream: t.TextIO | None = None,
        **kwargs: t.Any,
    ):
        if isinstance(base, str):
            module, _, name = base.rpartition(".")
            base = t.cast(type[logging.Formatter], getattr(importlib.import_module(module), name))
        self.base = base(format, datefmt=datefmt, style=style, validate=validate, defaults=defaults, **kwargs)
        self.pyg_style = pyg_style
        self.indent = indent
        self.stream = stream

    def format(self, record: logging.LogRecord) -> str:
        msg = record.getMessage()
        if "\n" in msg:
            formatted = self.base.format(record)
            idx = formatted.find(msg)
            indent = " " * len([c for c in formatted[:idx] if c in string.printable])
            line, *lines = msg.splitlines()
            body = textwrap.indent("\n".join(lines), prefix=indent)
            record.msg = record.message = f"{line}\n{body}"
            record.args = None
        message = self.base.format(record)

        d = record.__dict__
        extra = {k: d[k] for k in d.keys() - ReservedKeys}
        if not extra:
            return message

        js = json.dumps(extra, sort_keys=True, indent=(4 if self.indent else None), cls=JSONEncoder)
        if self.is_tty and not getattr(self.base, "no_color", False):
            ps = pygments.highlight(js, JsonLexer(), Terminal256Formatter(style=self.pyg_style))
        else:
            ps = js
        return message + " " + ps.strip()

    @property
    def is_tty(self) -> bool:
        stream = self.stream or sys.stderr
        return hasattr(stream, "isatty") and stream.isatty()

    def __getattr__(self, name: str) -> t.Any:
        return getattr(self.base, name)
