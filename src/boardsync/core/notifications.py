"""User-facing notifications.

The engine reports every rejection, success and rollback through a
``NotificationSink``; how it is shown (toast, status bar, stdout) is up to the
presentation layer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol

from boardsync.core.models.enums import NotificationKind


@dataclass(frozen=True, slots=True)
class Notification:
    kind: NotificationKind
    message: str
    created_at: datetime = field(default_factory=datetime.now, compare=False)


class NotificationSink(Protocol):
    def notify(self, notification: Notification) -> None: ...


class NullNotificationSink:
    """Discards notifications."""

    def notify(self, notification: Notification) -> None:
        del notification


class NotificationLog:
    """Keeps every notification in order. Used by the CLI and tests."""

    def __init__(self) -> None:
        self.entries: list[Notification] = []

    def notify(self, notification: Notification) -> None:
        self.entries.append(notification)

    def kinds(self) -> list[NotificationKind]:
        return [entry.kind for entry in self.entries]

    def messages(self) -> list[str]:
        return [entry.message for entry in self.entries]

    @property
    def last(self) -> Notification | None:
        return self.entries[-1] if self.entries else None

    def clear(self) -> None:
        self.entries.clear()
