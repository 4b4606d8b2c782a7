import typing as t

from gradekeeper.lib.json import JSONEncoder as BaseJSONEncoder
from gradekeeper.lib.json import JSONValue


class JSONEncoder(BaseJSONEncoder):
    """Encoder for log extras: never fails, falling back to ``repr``.

    Exceptions (e.g. a caught GradingError passed as an extra) are logged as
    their class name and message.
    """

    def default(self, o: t.Any) -> JSONValue:
        if isinstance(o, BaseException):
            return f"{type(o).__name__}: {o}"
        try:
            return super().default(o)
        except TypeError:
            return repr(o)
