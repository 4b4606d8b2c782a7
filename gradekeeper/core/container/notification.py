"""Notification channel selection: Redis Streams when configured, memory otherwise."""

from __future__ import annotations

import redis
from dependency_injector.containers import DeclarativeContainer
from dependency_injector.providers import Configuration, Object, Provider, Singleton

from gradekeeper.notify import InMemoryNotificationChannel, NotificationChannel, RedisNotificationChannel

from ..config.secrets import RedisSecrets
from ..config.storage import StreamingSettings


def provide_redis_client(
    config: StreamingSettings | None, secrets: RedisSecrets | None
) -> redis.Redis | None:  # type: ignore[type-arg]
    """Create a Redis client, or None if Redis is not configured."""
    if config is None:
        return None

    rs = config.redis
    password = secrets.password.get_secret_value() if secrets and secrets.password else None
    if rs.socket_path:
        return redis.Redis(unix_socket_path=str(rs.socket_path), db=rs.database, password=password)
    return redis.Redis(host=rs.host, port=rs.port, db=rs.database, password=password)


def provide_channel(
    client: redis.Redis | None,  # type: ignore[type-arg]
    stream_prefix: str,
) -> NotificationChannel:
    if client is not None:
        return RedisNotificationChannel(client, stream_prefix=stream_prefix)
    return InMemoryNotificationChannel()


class NotificationContainer(DeclarativeContainer):
    config = Configuration()
    secrets = Configuration()
    stream_prefix: Provider[str] = Object("gradekeeper:notifications")

    redis_client: Provider[redis.Redis | None] = Singleton(  # type: ignore[type-arg]
        provide_redis_client,
        config=config.as_(lambda v: StreamingSettings(**v) if v else None),
        secrets=secrets.redis.as_(lambda v: RedisSecrets(**v) if v else None),
    )
    channel: Provider[NotificationChannel] = Singleton(
        provide_channel,
        client=redis_client,
        stream_prefix=stream_prefix,
    )
