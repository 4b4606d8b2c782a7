"""In-memory notification channel for tests and single-process deployments."""

from __future__ import annotations

import threading
import typing as t

from gradekeeper.core.provider import TimestampProvider, utcnow
from gradekeeper.model import Notification, NotificationType, UserID


class InMemoryNotificationChannel(object):
    """Keeps every notification in a list, in delivery order."""

    def __init__(self, utcnow: TimestampProvider = utcnow) -> None:
        self._utcnow = utcnow
        self._sent: list[Notification] = []
        self._lock = threading.Lock()

    def notify(self, user_id: UserID, type: NotificationType, payload: dict[str, t.Any]) -> None:
        notification = Notification(user_id=user_id, type=type, payload=payload, create_time=self._utcnow())
        with self._lock:
            self._sent.append(notification)

    @property
    def sent(self) -> tuple[Notification, ...]:
        with self._lock:
            return tuple(self._sent)

    def for_user(self, user_id: UserID) -> tuple[Notification, ...]:
        return tuple(n for n in self.sent if n.user_id == user_id)

    def of_type(self, type: NotificationType) -> tuple[Notification, ...]:
        return tuple(n for n in self.sent if n.type is type)

    def clear(self) -> None:
        with self._lock:
            self._sent.clear()
