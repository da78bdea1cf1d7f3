"""Turns achievement events into notifications and hands them to a Notifier."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Iterable

from vitaltrack.domains.health.domain_logic.achievements import (
    AchievementEvent,
    AchievementType,
)
from vitaltrack.domains.health.reminders import NotificationKind, Notifier

logger = logging.getLogger(__name__)

_KIND_FOR_EVENT = {
    AchievementType.GOAL_MET: NotificationKind.ACHIEVEMENT,
    AchievementType.PROGRESS: NotificationKind.GOAL_PROGRESS,
    AchievementType.ALERT: NotificationKind.HEALTH_ALERT,
    AchievementType.STREAK: NotificationKind.STREAK,
}


@dataclass(frozen=True)
class Notification:
    kind: NotificationKind
    title: str
    body: str


def format_event(event: AchievementEvent) -> Notification:
    """Build the title and body shown for an achievement event."""
    kind = _KIND_FOR_EVENT[event.type]
    if event.type is AchievementType.GOAL_MET:
        return Notification(
            kind,
            "🎉 Achievement Unlocked!",
            f"Congratulations! You've achieved: {event.label}",
        )
    if event.type is AchievementType.PROGRESS:
        percentage = round((event.ratio or 0.0) * 100)
        return Notification(
            kind,
            "🎯 Goal Progress Update",
            f"You're {percentage}% towards your {event.label} goal! Keep going!",
        )
    if event.type is AchievementType.ALERT:
        return Notification(kind, f"⚠️ Health Alert - {event.label}", event.message)
    return Notification(
        kind,
        "🔥 Streak Alert!",
        f"Amazing! You've maintained your {event.label} streak for {event.streak_days} days!",
    )


class ReminderDispatcher:
    """Formats events and delivers them through a Notifier.

    Delivery is best effort: a failing notifier is logged and skipped so
    that logging health data never fails because a notification did.
    """

    def __init__(self, notifier: Notifier) -> None:
        self._notifier = notifier

    async def dispatch(self, events: Iterable[AchievementEvent]) -> list[str]:
        """Deliver each event; returns identifiers of the delivered ones."""
        delivered: list[str] = []
        for event in events:
            note = format_event(event)
            try:
                delivered.append(await self._notifier.notify(note.kind, note.title, note.body))
            except Exception:
                logger.exception(
                    "Failed to deliver %s notification for %s", note.kind.value, event.kind.value
                )
        return delivered

    async def send_immediate(self, title: str, body: str) -> str:
        return await self._notifier.notify(NotificationKind.IMMEDIATE, title, body)


class LoggingNotifier:
    """Notifier that logs and keeps what it was asked to deliver.

    Stands in for a platform notification service.
    """

    def __init__(self) -> None:
        self.sent: list[Notification] = []

    async def notify(self, kind: NotificationKind, title: str, body: str) -> str:
        identifier = f"{kind.value.lower()}-{time.time_ns()}"
        self.sent.append(Notification(kind, title, body))
        logger.info("Notification %s: %s", identifier, title)
        return identifier
