"""Redis Streams notification channel."""

from __future__ import annotations

import logging
import typing as t

import redis

from gradekeeper.core.provider import TimestampProvider, utcnow
from gradekeeper.model import Notification, NotificationType, UserID

logger = logging.getLogger(__name__)


class RedisNotificationChannel(object):
    """Appends notifications to one Redis stream per user.

    Consumers (e-mail, in-app inbox) read ``<prefix>:<user_id>`` with XREAD.
    Streams are capped with MAXLEN so an idle inbox cannot grow without bound.
    """

    def __init__(
        self,
        client: redis.Redis,  # type: ignore[type-arg]
        stream_prefix: str = "gradekeeper:notifications",
        max_stream_len: int = 1000,
        utcnow: TimestampProvider = utcnow,
    ) -> None:
        self._client = client
        self._stream_prefix = stream_prefix
        self._max_stream_len = max_stream_len
        self._utcnow = utcnow

    def stream_key(self, user_id: UserID) -> str:
        return f"{self._stream_prefix}:{user_id}"

    def notify(self, user_id: UserID, type: NotificationType, payload: dict[str, t.Any]) -> None:
        notification = Notification(user_id=user_id, type=type, payload=payload, create_time=self._utcnow())
        try:
            self._client.xadd(
                self.stream_key(user_id),
                {"notification": notification.model_dump_json()},
                maxlen=self._max_stream_len,
            )
        except redis.RedisError as e:
            logger.warning(
                "notification delivery failed",
                extra={
                    "user_id": user_id,
                    "type": type.value,
                    "error": str(e),
                },
            )
