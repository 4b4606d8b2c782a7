__all__ = [
    "InMemoryNotificationChannel",
    "NotificationChannel",
    "RedisNotificationChannel",
]

from .channel import NotificationChannel
from .memory import InMemoryNotificationChannel
from .redis import RedisNotificationChannel
