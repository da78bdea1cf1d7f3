"""MCP tools for viewing the audit trail.

The trail holds tool names, timings, statuses and counts. It never holds
health values or passwords, only hashed input references.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

from fastmcp import Context, FastMCP

from vitaltrack.domains.health.tools.common import error_response, not_logged_in

if TYPE_CHECKING:
    from vitaltrack.core.audit.logger import AuditLogger
    from vitaltrack.domains.health.stores.user_directory import UserDirectory

logger = logging.getLogger(__name__)


def register_audit_tools(
    mcp: FastMCP,
    directory: UserDirectory,
    audit_logger: AuditLogger,
) -> None:
    """Register audit trail tools on the MCP server."""

    @mcp.tool
    async def audit_summary(
        ctx: Context,
        days: int = 30,
    ) -> str:
        """View recent activity on the logged-in account.

        Args:
            days: Number of days to look back (default: 30).
        """
        account = await directory.get_current_session()
        if account is None:
            return not_logged_in()
        if days < 1:
            return error_response("validation_error", "days must be at least 1.")

        since = (datetime.now(timezone.utc) - timedelta(days=days)).isoformat()

        total_events = audit_logger.count_events(since=since, account_id=account.id)
        exports = audit_logger.get_events(
            action="data_export", account_id=account.id, since=since
        )
        deletions = audit_logger.get_events(
            action="data_delete", account_id=account.id, since=since
        )
        recent_events = audit_logger.get_events(
            account_id=account.id, since=since, limit=20
        )

        display_events = []
        for event in recent_events:
            display_events.append({
                "timestamp": event.get("timestamp"),
                "action": event.get("action"),
                "tool_name": event.get("tool_name"),
                "status": event.get("status"),
                "error_type": event.get("error_type"),
                "duration_ms": event.get("duration_ms"),
            })

        return json.dumps({
            "status": "ok",
            "period_days": days,
            "total_events": total_events,
            "exports": len(exports),
            "deletions": len(deletions),
            "recent_events": display_events,
            "note": "This audit trail contains no health values and no passwords.",
        }, indent=2)
