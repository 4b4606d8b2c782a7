__all__ = [
    "BootConfiguration",
    "di",
    "GradekeeperContainer",
    "LoggingProvider",
    "Settings",
    "Secrets",
    "TimestampProvider",
]


from . import di
from .config import Secrets, Settings
from .container import BootConfiguration, GradekeeperContainer
from .provider import LoggingProvider, TimestampProvider
