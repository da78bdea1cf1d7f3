"""MCP tools for accounts: registration, login, session and profile.

Emails are normalized to lower case here, before they reach the directory,
so two spellings of one address cannot register twice.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from fastmcp import Context, FastMCP

from vitaltrack.domains.health.domain_logic.derived_metrics import (
    bmi,
    bmi_category,
    format_bmi,
)
from vitaltrack.domains.health.domain_logic.validation import (
    normalize_email,
    validate_profile_changes,
    validate_registration,
)
from vitaltrack.domains.health.tools.common import (
    HANDLED_ERRORS,
    ToolAudit,
    error_response,
    not_logged_in,
)

if TYPE_CHECKING:
    from vitaltrack.core.audit.logger import AuditLogger
    from vitaltrack.domains.health.stores.user_directory import UserDirectory

logger = logging.getLogger(__name__)


def register_account_tools(
    mcp: FastMCP,
    directory: UserDirectory,
    audit_logger: AuditLogger | None = None,
) -> None:
    """Register account and profile tools on the MCP server."""

    @mcp.tool
    async def register_account(
        ctx: Context,
        name: str,
        email: str,
        password: str,
        age: int | None = None,
        gender: str | None = None,
        height: float | None = None,
        weight: float | None = None,
    ) -> str:
        """Create an account and log in as it.

        Args:
            name: Display name.
            email: Email address (unique, case-insensitive).
            password: At least 6 characters. Stored as entered.
            age: Optional age in years (1-120).
            gender: Optional free-text gender.
            height: Optional height in cm (50-300).
            weight: Optional weight in kg (20-500).
        """
        audit = ToolAudit(audit_logger, "register_account", {"email": normalize_email(email)})
        try:
            name, email = validate_registration(name, email, password)
            profile = validate_profile_changes(
                {"age": age, "gender": gender, "height": height, "weight": weight}
            )
            account = await directory.register(name, email, password, **profile)
        except HANDLED_ERRORS as exc:
            return audit.fail_with(exc)

        audit.success(account_id=account.id)
        return json.dumps({"status": "registered", "account": account.public_dict()})

    @mcp.tool
    async def login(ctx: Context, email: str, password: str) -> str:
        """Log in with email and password.

        Args:
            email: Registered email address.
            password: Account password.
        """
        audit = ToolAudit(audit_logger, "login", {"email": normalize_email(email)})
        if not password.strip():
            return error_response("validation_error", "Please enter your password")
        try:
            account = await directory.login(normalize_email(email), password)
        except HANDLED_ERRORS as exc:
            return audit.fail_with(exc)

        audit.success(account_id=account.id)
        return json.dumps({"status": "logged_in", "account": account.public_dict()})

    @mcp.tool
    async def logout(ctx: Context) -> str:
        """Log out of the current session."""
        audit = ToolAudit(audit_logger, "logout")
        current = await directory.get_current_session()
        try:
            await directory.logout()
        except HANDLED_ERRORS as exc:
            return audit.fail_with(exc)
        audit.success(account_id=current.id if current else None)
        return json.dumps({"status": "logged_out"})

    @mcp.tool
    async def current_account(ctx: Context) -> str:
        """Show the logged-in account, if any."""
        account = await directory.get_current_session()
        if account is None:
            return json.dumps({"status": "ok", "logged_in": False})
        return json.dumps({
            "status": "ok",
            "logged_in": True,
            "account": account.public_dict(),
        })

    @mcp.tool
    async def update_profile(
        ctx: Context,
        name: str | None = None,
        email: str | None = None,
        age: int | None = None,
        gender: str | None = None,
        height: float | None = None,
        weight: float | None = None,
        profile_photo: str | None = None,
        clear_fields: list[str] | None = None,
    ) -> str:
        """Update profile fields of the logged-in account.

        Only the fields you pass are changed.

        Args:
            name: New display name.
            email: New email address.
            age: Age in years (1-120).
            gender: Free-text gender.
            height: Height in cm (50-300).
            weight: Weight in kg (20-500).
            profile_photo: Photo URI.
            clear_fields: Optional fields to erase (age, gender, height, weight, profile_photo).
        """
        account = await directory.get_current_session()
        if account is None:
            return not_logged_in()

        supplied = {
            "name": name,
            "email": email,
            "age": age,
            "gender": gender,
            "height": height,
            "weight": weight,
            "profile_photo": profile_photo,
        }
        changes: dict[str, Any] = {k: v for k, v in supplied.items() if v is not None}
        clearable = {"age", "gender", "height", "weight", "profile_photo"}
        for field in clear_fields or []:
            if field not in clearable:
                return error_response("validation_error", f"Cannot clear field {field!r}")
            changes[field] = None

        audit = ToolAudit(audit_logger, "update_profile", {"fields": sorted(changes)})
        if not changes:
            return error_response("validation_error", "No profile changes provided")
        try:
            updated = await directory.update_profile(
                account.id, **validate_profile_changes(changes)
            )
        except HANDLED_ERRORS as exc:
            return audit.fail_with(exc, account_id=account.id)

        audit.success(account_id=account.id, fields=sorted(changes))
        return json.dumps({"status": "updated", "account": updated.public_dict()})

    @mcp.tool
    async def profile_bmi(ctx: Context) -> str:
        """Body mass index and category for the logged-in account."""
        account = await directory.get_current_session()
        if account is None:
            return not_logged_in()
        value = bmi(account.height, account.weight)
        return json.dumps({
            "status": "ok",
            "bmi": format_bmi(value),
            "category": bmi_category(value).value if value > 0 else None,
            "height_cm": account.height,
            "weight_kg": account.weight,
        })
