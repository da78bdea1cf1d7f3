"""Notification preferences and the daily reminders they imply.

Preferences are stored once per install under ``notificationSettings``, not
per account.
"""

from __future__ import annotations

import logging
import re
from dataclasses import replace
from typing import Any

from vitaltrack.core.storage.collection_store import (
    NOTIFICATION_SETTINGS_KEY,
    CollectionStore,
)
from vitaltrack.core.storage.key_value import StorageUnavailableError
from vitaltrack.core.storage.models import NotificationPreferences
from vitaltrack.domains.health.reminders import DailyReminder, ReminderScheduler

logger = logging.getLogger(__name__)

_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})$")

# (preference flag, preference time, identifier, title, body)
_REMINDER_CATALOG = [
    (
        "water_reminders",
        "water_reminder_time",
        "water-reminder",
        "💧 Time to hydrate!",
        "Don't forget to drink water and stay hydrated.",
    ),
    (
        "sleep_reminders",
        "sleep_reminder_time",
        "sleep-reminder",
        "😴 Time for bed!",
        "Get ready for a good night's sleep to maintain your health.",
    ),
    (
        "exercise_reminders",
        "exercise_reminder_time",
        "exercise-reminder",
        "🏃‍♂️ Time to move!",
        "Take a walk or do some exercise to reach your daily step goal.",
    ),
    (
        "meal_reminders",
        "meal_reminder_time",
        "meal-reminder",
        "🍽️ Time to eat!",
        "Don't forget to log your meals and track your nutrition.",
    ),
]


def parse_time_of_day(value: str) -> tuple[int, int]:
    """Parse ``HH:MM`` into (hour, minute).

    Raises:
        ValueError: If the string is not a valid 24-hour time.
    """
    match = _TIME_RE.match(value.strip())
    if not match:
        raise ValueError(f"Invalid time {value!r}; expected HH:MM")
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        raise ValueError(f"Invalid time {value!r}; expected HH:MM")
    return hour, minute


def validate_preferences(prefs: NotificationPreferences) -> None:
    for _, time_field, *_ in _REMINDER_CATALOG:
        parse_time_of_day(getattr(prefs, time_field))


def build_daily_reminders(prefs: NotificationPreferences) -> list[DailyReminder]:
    """The daily reminders that should be scheduled for ``prefs``."""
    reminders = []
    for flag, time_field, identifier, title, body in _REMINDER_CATALOG:
        if not getattr(prefs, flag):
            continue
        hour, minute = parse_time_of_day(getattr(prefs, time_field))
        reminders.append(DailyReminder(identifier, title, body, hour, minute))
    return reminders


async def apply_reminder_schedule(
    scheduler: ReminderScheduler, prefs: NotificationPreferences
) -> list[str]:
    """Replace every scheduled reminder with the ones ``prefs`` enables."""
    reminders = build_daily_reminders(prefs)
    await scheduler.cancel_all()
    scheduled = [await scheduler.schedule_daily(r) for r in reminders]
    logger.info("Scheduled %d daily reminders", len(scheduled))
    return scheduled


class NotificationSettingsStore:
    """Reads and writes the install-wide notification preferences."""

    def __init__(self, collections: CollectionStore) -> None:
        self._collections = collections

    async def get(self) -> NotificationPreferences:
        """Stored preferences, defaults when none are stored.

        If the medium cannot be read, every reminder reads as disabled.
        """
        try:
            document = await self._collections.read_document(NOTIFICATION_SETTINGS_KEY)
        except StorageUnavailableError:
            logger.exception("Notification settings unavailable; reminders disabled")
            return NotificationPreferences.disabled()
        if document is None:
            return NotificationPreferences()
        return NotificationPreferences.from_dict(document)

    async def save(self, prefs: NotificationPreferences) -> None:
        """Persist ``prefs``.

        Raises:
            ValueError: If a reminder time is not ``HH:MM``.
            StorageUnavailableError: If the medium cannot be written.
        """
        validate_preferences(prefs)
        async with self._collections.locked(NOTIFICATION_SETTINGS_KEY):
            await self._collections.write_document(NOTIFICATION_SETTINGS_KEY, prefs.to_dict())
        logger.info("Notification settings saved")

    async def update(self, **changes: Any) -> NotificationPreferences:
        """Apply ``changes`` on top of the stored preferences and persist.

        Unlike :meth:`get`, an unreadable medium is an error here so the
        all-off fallback is never written back over real settings.

        Raises:
            ValueError: If a reminder time is not ``HH:MM``.
            StorageUnavailableError: If the medium cannot be read or written.
        """
        async with self._collections.locked(NOTIFICATION_SETTINGS_KEY):
            document = await self._collections.read_document(NOTIFICATION_SETTINGS_KEY)
            current = (
                NotificationPreferences()
                if document is None
                else NotificationPreferences.from_dict(document)
            )
            prefs = replace(current, **changes)
            validate_preferences(prefs)
            await self._collections.write_document(NOTIFICATION_SETTINGS_KEY, prefs.to_dict())
        logger.info("Notification settings updated (fields=%s)", sorted(changes))
        return prefs


class InMemoryReminderScheduler:
    """ReminderScheduler that keeps reminders in a dict (no OS delivery)."""

    def __init__(self) -> None:
        self.scheduled: dict[str, DailyReminder] = {}

    async def cancel_all(self) -> None:
        self.scheduled.clear()

    async def schedule_daily(self, reminder: DailyReminder) -> str:
        self.scheduled[reminder.identifier] = reminder
        return reminder.identifier
