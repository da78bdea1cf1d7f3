"""MCP tools for daily health tracking: log a metric, today's view, history.

Logging a value also checks it against the achievement rules and the
logging streak, and hands any resulting events to the reminder dispatcher.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from fastmcp import Context, FastMCP

from vitaltrack.core.storage.models import MetricKind
from vitaltrack.domains.health.domain_logic.achievements import (
    STREAK_MILESTONES,
    achievement_check,
    streak_event,
)
from vitaltrack.domains.health.domain_logic.analytics import (
    current_streak,
    group_by_date,
    summarize_period,
)
from vitaltrack.domains.health.domain_logic.derived_metrics import (
    describe_snapshot,
    progress_ratio,
)
from vitaltrack.domains.health.domain_logic.validation import (
    parse_kind,
    validate_observation,
)
from vitaltrack.domains.health.reminders.dispatcher import format_event
from vitaltrack.domains.health.tools.common import (
    HANDLED_ERRORS,
    ToolAudit,
    error_response,
    not_logged_in,
)

if TYPE_CHECKING:
    from vitaltrack.core.audit.logger import AuditLogger
    from vitaltrack.domains.health.reminders.dispatcher import ReminderDispatcher
    from vitaltrack.domains.health.stores.health_records import HealthRecordStore
    from vitaltrack.domains.health.stores.user_directory import UserDirectory

logger = logging.getLogger(__name__)

HISTORY_RANGES = (7, 14, 30)


def register_tracking_tools(
    mcp: FastMCP,
    directory: UserDirectory,
    records: HealthRecordStore,
    dispatcher: ReminderDispatcher,
    audit_logger: AuditLogger | None = None,
) -> None:
    """Register health tracking tools on the MCP server."""

    @mcp.tool
    async def log_health_data(ctx: Context, metric_type: str, value: float) -> str:
        """Log today's value for a metric. Logging again today replaces it.

        Args:
            metric_type: One of 'steps', 'water' (glasses), 'sleep' (hours),
                'meals' (calories), 'heartRate' (bpm), 'mood' (1-5).
            value: The measured value.
        """
        account = await directory.get_current_session()
        if account is None:
            return not_logged_in()

        audit = ToolAudit(audit_logger, "log_health_data", {"metric_type": metric_type})
        try:
            kind = parse_kind(metric_type)
            number = validate_observation(kind, value)
            record, replaced = await records.upsert_observation(account.id, kind, number)
        except HANDLED_ERRORS as exc:
            return audit.fail_with(exc, account_id=account.id)

        events = achievement_check(kind, number)
        history = await records.get_records_in_range(account.id, max(STREAK_MILESTONES))
        streak = current_streak(history, kind, record.day)
        # A same-day replacement does not extend the streak
        milestone = None if replaced else streak_event(kind, streak)
        if milestone is not None:
            events.append(milestone)
        delivered = await dispatcher.dispatch(events)

        audit.success(account_id=account.id, type=kind.value, events=len(events))
        return json.dumps({
            "status": "saved",
            "record": record.to_dict(),
            "progress": round(progress_ratio(kind, number), 4),
            "streak_days": streak,
            "notifications": [format_event(e).title for e in events],
            "notifications_delivered": len(delivered),
        })

    @mcp.tool
    async def today_summary(ctx: Context) -> str:
        """Today's logged metrics with progress toward each daily target."""
        account = await directory.get_current_session()
        if account is None:
            return not_logged_in()

        snapshot = await records.get_today_snapshot(account.id)
        return json.dumps({
            "status": "ok",
            "date": records.today().isoformat(),
            "metrics": {kind.value: value for kind, value in snapshot.items()},
            "cards": [card.to_dict() for card in describe_snapshot(snapshot)],
        })

    @mcp.tool
    async def health_history(ctx: Context, days: int = 7) -> str:
        """Daily values and a period summary for the last N days.

        Args:
            days: Look-back window: 7, 14 or 30.
        """
        account = await directory.get_current_session()
        if account is None:
            return not_logged_in()
        if days not in HISTORY_RANGES:
            return error_response(
                "validation_error",
                f"days must be one of {', '.join(str(d) for d in HISTORY_RANGES)}",
            )

        audit = ToolAudit(audit_logger, "health_history", {"days": days})
        history = await records.get_records_in_range(account.id, days)
        today = records.today()
        audit.success(account_id=account.id, records=len(history))
        return json.dumps({
            "status": "ok",
            "days": days,
            "daily": {
                day: {kind.value: value for kind, value in values.items()}
                for day, values in group_by_date(history).items()
            },
            "summary": summarize_period(history).to_dict(),
            "streaks": {
                kind.value: current_streak(history, kind, today) for kind in MetricKind
            },
        }, indent=2)

