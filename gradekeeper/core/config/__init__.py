__all__ = [
    "GradebookWebSettings",
    "GradingSettings",
    "LoggingSettings",
    "Secrets",
    "Settings",
    "StorageSettings",
    "WebSettings",
]


from .grading import GradingSettings
from .logging import LoggingSettings
from .secrets import Secrets
from .settings import Settings
from .storage import StorageSettings
from .web import GradebookWebSettings, WebSettings
