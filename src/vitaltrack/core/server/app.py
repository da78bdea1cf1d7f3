"""VitalTrack MCP Server: application factory.

This module provides:
- create_app() for testability (integration tests create fresh server instances)
- Module-level `mcp` variable for FastMCP discovery
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date

from fastmcp import FastMCP

from vitaltrack.core.audit.logger import AuditLogger
from vitaltrack.core.config.settings import get_settings
from vitaltrack.core.storage.collection_store import CollectionStore
from vitaltrack.core.storage.database import SCHEMA_VERSION, HealthDatabase
from vitaltrack.core.storage.key_value import KeyValueStore, SQLiteKeyValueStore
from vitaltrack.domains.health.reminders import Notifier, ReminderScheduler
from vitaltrack.domains.health.reminders.dispatcher import (
    LoggingNotifier,
    ReminderDispatcher,
)
from vitaltrack.domains.health.reminders.schedule import (
    InMemoryReminderScheduler,
    NotificationSettingsStore,
)
from vitaltrack.domains.health.stores.health_records import HealthRecordStore
from vitaltrack.domains.health.stores.user_directory import UserDirectory
from vitaltrack.domains.health.tools.account_tools import register_account_tools
from vitaltrack.domains.health.tools.audit_tools import register_audit_tools
from vitaltrack.domains.health.tools.data_management_tools import (
    register_data_management_tools,
)
from vitaltrack.domains.health.tools.reminder_tools import register_reminder_tools
from vitaltrack.domains.health.tools.tracking_tools import register_tracking_tools

logger = logging.getLogger(__name__)

SERVER_NAME = "VitalTrack"
SERVER_VERSION = "0.1.0"


def create_app(
    *,
    key_value_override: KeyValueStore | None = None,
    notifier_override: Notifier | None = None,
    scheduler_override: ReminderScheduler | None = None,
    today_override: Callable[[], date] | None = None,
) -> FastMCP:
    """Create and configure the VitalTrack MCP server.

    This is the main application factory. It:
    1. Creates the FastMCP server instance
    2. Opens the local SQLite database (key-value store and audit trail)
    3. Builds the user directory, record store and reminder settings
    4. Wires achievement notifications to a notifier
    5. Registers all tools

    With ``key_value_override`` the collections live in that medium instead
    of the database; the audit trail still uses the database.
    """
    settings = get_settings()

    # --- Server instance ---
    server = FastMCP(
        SERVER_NAME,
        instructions=(
            "VitalTrack: personal health tracking. Register or log in, then log "
            "daily steps, water, sleep, calories, heart rate and mood; review "
            "today's progress and recent history; manage daily reminders."
        ),
    )

    # --- Storage ---
    health_db = HealthDatabase(settings.db_path)
    health_db.initialize()
    logger.info(
        "Health database initialized: %s (schema v%d)",
        settings.db_path,
        health_db.get_schema_version(),
    )

    if key_value_override is not None:
        medium: KeyValueStore = key_value_override
    else:
        medium = SQLiteKeyValueStore(health_db)
    collections = CollectionStore(medium)

    directory = UserDirectory(collections)
    if today_override is not None:
        records = HealthRecordStore(collections, today=today_override)
    else:
        records = HealthRecordStore(collections)
    settings_store = NotificationSettingsStore(collections)

    # --- Notifications ---
    notifier = notifier_override if notifier_override is not None else LoggingNotifier()
    dispatcher = ReminderDispatcher(notifier)
    scheduler = (
        scheduler_override if scheduler_override is not None else InMemoryReminderScheduler()
    )

    # --- Audit trail ---
    audit_logger: AuditLogger | None = None
    if settings.audit_enabled:
        audit_logger = AuditLogger(health_db)
    else:
        logger.info("Audit trail disabled (AUDIT_ENABLED=false)")

    # --- Register tools ---
    @server.tool
    async def health_check() -> dict:
        """Check server health and return basic status information."""
        return {
            "status": "ok",
            "server": SERVER_NAME,
            "version": SERVER_VERSION,
            "db_path": health_db.path,
            "schema_version": health_db.get_schema_version() or SCHEMA_VERSION,
            "accounts": await directory.count_accounts(),
            "records_stored": await records.count_records(),
            "audit_enabled": audit_logger is not None,
        }

    register_account_tools(server, directory, audit_logger)
    register_tracking_tools(server, directory, records, dispatcher, audit_logger)
    register_data_management_tools(server, directory, records, audit_logger)
    register_reminder_tools(server, settings_store, scheduler, audit_logger)
    logger.info("Account, tracking, data management and reminder tools registered")

    if audit_logger is not None:
        register_audit_tools(server, directory, audit_logger)
        logger.info("Audit trail tools registered")

    return server


# Module-level instance for FastMCP discovery ("...app.py:mcp").
# Lazy: only created when this module is loaded directly (not when tests import create_app).
def __getattr__(name: str):
    if name == "mcp":
        global mcp  # noqa: PLW0603
        mcp = create_app()
        return mcp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
