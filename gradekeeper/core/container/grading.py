from __future__ import annotations

from dependency_injector.containers import DeclarativeContainer
from dependency_injector.providers import Configuration, Object, Provider, Singleton

from gradekeeper.grading.locks import CourseLocks
from gradekeeper.grading.workflow import GradingWorkflow
from gradekeeper.notify import NotificationChannel

from ..config.grading import GradingSettings
from ..provider import TimestampProvider, utcnow


class GradingContainer(DeclarativeContainer):
    config = Configuration()
    channel: Provider[NotificationChannel] = Object()
    utcnow: Provider[TimestampProvider] = Object(utcnow)

    locks: Provider[CourseLocks] = Singleton(CourseLocks)
    workflow: Provider[GradingWorkflow] = Singleton(
        GradingWorkflow,
        notifier=channel,
        settings=config.as_(GradingSettings),
        locks=locks,
        utcnow=utcnow,
    )
