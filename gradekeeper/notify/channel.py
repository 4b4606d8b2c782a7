"""The sink the grading workflow reports state changes to."""

from __future__ import annotations

import typing as t

from gradekeeper.model import NotificationType, UserID


class NotificationChannel(t.Protocol):
    """Fire-and-forget delivery of a notification to one user.

    Implementations must not raise for delivery failures: a grade that was
    committed stays committed whether or not anybody heard about it.
    """

    def notify(self, user_id: UserID, type: NotificationType, payload: dict[str, t.Any]) -> None: ...
