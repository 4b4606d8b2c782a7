__all__ = [
    "BootConfiguration",
    "GradekeeperContainer",
    "GradingContainer",
    "StorageContainer",
]

from .gradekeeper import BootConfiguration, GradekeeperContainer
from .grading import GradingContainer
from .storage import StorageContainer
