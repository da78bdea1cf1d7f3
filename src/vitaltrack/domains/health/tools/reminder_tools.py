"""MCP tools for daily reminder preferences."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict
from typing import TYPE_CHECKING

from fastmcp import Context, FastMCP

from vitaltrack.domains.health.reminders.schedule import apply_reminder_schedule
from vitaltrack.domains.health.tools.common import (
    HANDLED_ERRORS,
    ToolAudit,
    error_response,
)

if TYPE_CHECKING:
    from vitaltrack.core.audit.logger import AuditLogger
    from vitaltrack.domains.health.reminders import ReminderScheduler
    from vitaltrack.domains.health.reminders.schedule import NotificationSettingsStore

logger = logging.getLogger(__name__)


def register_reminder_tools(
    mcp: FastMCP,
    settings_store: NotificationSettingsStore,
    scheduler: ReminderScheduler,
    audit_logger: AuditLogger | None = None,
) -> None:
    """Register reminder preference tools on the MCP server."""

    @mcp.tool
    async def get_notification_settings(ctx: Context) -> str:
        """Show which daily reminders are on and when they fire."""
        prefs = await settings_store.get()
        return json.dumps({"status": "ok", "settings": asdict(prefs)})

    @mcp.tool
    async def save_notification_settings(
        ctx: Context,
        water_reminders: bool | None = None,
        sleep_reminders: bool | None = None,
        exercise_reminders: bool | None = None,
        meal_reminders: bool | None = None,
        water_reminder_time: str | None = None,
        sleep_reminder_time: str | None = None,
        exercise_reminder_time: str | None = None,
        meal_reminder_time: str | None = None,
    ) -> str:
        """Change reminder preferences and reschedule the daily reminders.

        Only the settings you pass are changed. Times are 24-hour ``HH:MM``.

        Args:
            water_reminders: Remind to drink water.
            sleep_reminders: Remind to go to bed.
            exercise_reminders: Remind to move.
            meal_reminders: Remind to log meals.
            water_reminder_time: Time of the water reminder.
            sleep_reminder_time: Time of the bedtime reminder.
            exercise_reminder_time: Time of the exercise reminder.
            meal_reminder_time: Time of the meal reminder.
        """
        supplied = {
            "water_reminders": water_reminders,
            "sleep_reminders": sleep_reminders,
            "exercise_reminders": exercise_reminders,
            "meal_reminders": meal_reminders,
            "water_reminder_time": water_reminder_time,
            "sleep_reminder_time": sleep_reminder_time,
            "exercise_reminder_time": exercise_reminder_time,
            "meal_reminder_time": meal_reminder_time,
        }
        changes = {k: v for k, v in supplied.items() if v is not None}

        audit = ToolAudit(audit_logger, "save_notification_settings", changes)
        try:
            prefs = await settings_store.update(**changes)
        except ValueError as exc:
            audit.failure("validation_error")
            return error_response("validation_error", str(exc))
        except HANDLED_ERRORS as exc:
            return audit.fail_with(exc)

        scheduled = await apply_reminder_schedule(scheduler, prefs)
        audit.success(scheduled=len(scheduled))
        return json.dumps({
            "status": "saved",
            "settings": asdict(prefs),
            "scheduled_reminders": scheduled,
        })
