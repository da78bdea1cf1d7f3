"""MCP tools for health data management: CSV export and full deletion.

Both operate only on the logged-in account's records. Exports and
deletions are audit-logged with counts, never values.
"""

from __future__ import annotations

import json
import logging
import time
from typing import TYPE_CHECKING

from fastmcp import Context, FastMCP

from vitaltrack.domains.health.tools.common import (
    HANDLED_ERRORS,
    ToolAudit,
    not_logged_in,
)

if TYPE_CHECKING:
    from vitaltrack.core.audit.logger import AuditLogger
    from vitaltrack.domains.health.stores.health_records import HealthRecordStore
    from vitaltrack.domains.health.stores.user_directory import UserDirectory

logger = logging.getLogger(__name__)


def register_data_management_tools(
    mcp: FastMCP,
    directory: UserDirectory,
    records: HealthRecordStore,
    audit_logger: AuditLogger | None = None,
) -> None:
    """Register data management tools on the MCP server."""

    @mcp.tool
    async def export_health_csv(ctx: Context) -> str:
        """Export every logged value of the current account as CSV.

        The CSV has a ``Date,Type,Value`` header and one row per record.
        """
        account = await directory.get_current_session()
        if account is None:
            return not_logged_in()

        csv_text = await records.export_csv(account.id)
        if not csv_text:
            return json.dumps({
                "status": "no_data",
                "message": "No health data to export.",
            })

        count = csv_text.count("\n")
        if audit_logger is not None:
            audit_logger.log_data_export(
                account_id=account.id,
                count=count,
                tool_name="export_health_csv",
            )
        return json.dumps({
            "status": "ok",
            "records_exported": count,
            "csv": csv_text,
        })

    @mcp.tool
    async def clear_health_data(ctx: Context, confirm: str = "") -> str:
        """Permanently delete ALL health records of the current account.

        Other accounts' records are untouched. This cannot be undone.

        Args:
            confirm: Must be exactly 'DELETE_ALL' to proceed. Safety gate.
        """
        account = await directory.get_current_session()
        if account is None:
            return not_logged_in()

        if confirm != "DELETE_ALL":
            return json.dumps({
                "status": "cancelled",
                "message": (
                    "To delete all of your health data, call this tool with "
                    "confirm='DELETE_ALL'. This action cannot be undone."
                ),
            })

        start_time = time.monotonic()
        audit = ToolAudit(audit_logger, "clear_health_data")
        try:
            count = await records.clear_all_for_account(account.id)
        except HANDLED_ERRORS as exc:
            return audit.fail_with(exc, account_id=account.id)
        elapsed_ms = (time.monotonic() - start_time) * 1000

        if audit_logger is not None:
            audit_logger.log_data_delete(
                account_id=account.id,
                tool_name="clear_health_data",
                count=count,
                metadata={"confirmed": True},
            )

        return json.dumps({
            "status": "all_deleted",
            "records_deleted": count,
            "duration_ms": round(elapsed_ms, 1),
            "message": "All of your health data has been permanently deleted.",
        })
