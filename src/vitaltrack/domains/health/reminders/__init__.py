"""Reminder collaborators: the boundary to whatever delivers notifications.

The core decides what to say and when a daily reminder should fire; a
platform notifier or scheduler does the actual delivery.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol, runtime_checkable


class NotificationKind(str, Enum):
    IMMEDIATE = "Immediate"
    ACHIEVEMENT = "Achievement"
    GOAL_PROGRESS = "GoalProgress"
    HEALTH_ALERT = "HealthAlert"
    STREAK = "Streak"


@dataclass(frozen=True)
class DailyReminder:
    """A repeating reminder at a fixed local time of day."""

    identifier: str  # e.g. 'water-reminder'
    title: str
    body: str
    hour: int
    minute: int


@runtime_checkable
class Notifier(Protocol):
    """Delivers one fully formatted notification right away."""

    async def notify(self, kind: NotificationKind, title: str, body: str) -> str:
        """Deliver the notification and return its identifier."""
        ...


@runtime_checkable
class ReminderScheduler(Protocol):
    """Owns repeating daily reminders."""

    async def cancel_all(self) -> None:
        """Cancel every scheduled reminder."""
        ...

    async def schedule_daily(self, reminder: DailyReminder) -> str:
        """Schedule ``reminder`` to repeat daily and return its identifier."""
        ...
