import datetime
import inspect
import logging
import logging.config
import typing as t

TimestampProvider = t.Callable[..., datetime.datetime]

TRACE: t.Final[int] = 5


class TraceLogLevelLogger(logging.Logger):
    def trace(self, message: str, *args: t.Any, **kwargs: t.Any):
        if self.isEnabledFor(TRACE):
            self._log(TRACE, message, args, **kwargs)


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.UTC)


class LoggingProvider(object):
    """
    Applies the ``logging`` configuration section and hands out loggers

    A ``TRACE`` level (5) is registered below ``DEBUG`` for per-row storage
    chatter.
    """

    Function: t.Final[t.Literal["fn"]] = "fn"
    Class: t.Final[t.Literal["cls"]] = "cls"
    Module: t.Final[t.Literal["mod"]] = "mod"

    def __init__(self, config: dict[str, t.Any], debug: bool):
        LoggingProvider.create_trace_loglevel()
        logging.config.dictConfig(config)
        if debug:
            self.capture_warnings(True)

    @staticmethod
    def create_trace_loglevel():
        logging.setLoggerClass(TraceLogLevelLogger)
        logging.addLevelName(TRACE, "TRACE")

    @classmethod
    def get_logger(
        cls, scope: t.Literal["mod", "cls", "fn"] = "mod", name: str | None = None, n_frames: int = 1
    ) -> TraceLogLevelLogger:
        if name:
            return t.cast(TraceLogLevelLogger, logging.getLogger(name))

        frame = inspect.stack()[n_frames].frame
        mod = frame.f_globals["__name__"]
        match scope:
            case cls.Module:
                name = mod

            case cls.Function:
                fn = frame.f_code.co_name
                owner = frame.f_locals.get("self")
                name = f"{mod}.{owner.__class__.__name__}.{fn}" if owner is not None else f"{mod}.{fn}"

            case cls.Class:
                owner = frame.f_locals.get("self") or frame.f_locals.get("cls")
                if owner is None:
                    raise RuntimeError("could not determine class")
                owner_cls = owner if isinstance(owner, type) else owner.__class__
                name = f"{owner_cls.__module__}.{owner_cls.__name__}"

        return t.cast(TraceLogLevelLogger, logging.getLogger(name))

    @staticmethod
    def capture_warnings(capture: bool):
        logging.captureWarnings(capture)
