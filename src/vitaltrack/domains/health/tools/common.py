"""Shared helpers for the health MCP tools: error payloads and auditing."""

from __future__ import annotations

import json
import logging
import time
from typing import TYPE_CHECKING, Any

from vitaltrack.core.storage.key_value import StorageUnavailableError
from vitaltrack.domains.health.domain_logic.validation import ValidationError
from vitaltrack.domains.health.stores.user_directory import (
    AccountNotFoundError,
    DuplicateEmailError,
    InvalidCredentialsError,
)

if TYPE_CHECKING:
    from vitaltrack.core.audit.logger import AuditLogger

logger = logging.getLogger(__name__)

ERROR_CODES: dict[type[Exception], str] = {
    DuplicateEmailError: "duplicate_email",
    InvalidCredentialsError: "invalid_credentials",
    AccountNotFoundError: "account_not_found",
    ValidationError: "validation_error",
    StorageUnavailableError: "storage_unavailable",
}

# Errors a tool reports back as a payload instead of raising
HANDLED_ERRORS = tuple(ERROR_CODES)


def error_code(exc: Exception) -> str:
    for exc_type, code in ERROR_CODES.items():
        if isinstance(exc, exc_type):
            return code
    return type(exc).__name__


def error_response(code: str, message: str) -> str:
    return json.dumps({"status": "error", "error": code, "message": message})


def not_logged_in() -> str:
    return error_response("not_logged_in", "Please log in to track health data.")


class ToolAudit:
    """Times one tool call and writes its audit row when it finishes."""

    def __init__(
        self,
        audit_logger: AuditLogger | None,
        tool_name: str,
        tool_input: Any = None,
    ) -> None:
        self._audit = audit_logger
        self._tool_name = tool_name
        self._tool_input = tool_input
        self._start = time.monotonic()

    @property
    def elapsed_ms(self) -> float:
        return (time.monotonic() - self._start) * 1000

    def success(self, *, account_id: str | None = None, **metadata: Any) -> None:
        self._write("success", None, account_id, metadata)

    def failure(self, exc_or_code: Exception | str, *, account_id: str | None = None) -> None:
        code = exc_or_code if isinstance(exc_or_code, str) else error_code(exc_or_code)
        self._write("failure", code, account_id, {})

    def _write(
        self,
        status: str,
        error_type: str | None,
        account_id: str | None,
        metadata: dict[str, Any],
    ) -> None:
        if self._audit is None:
            return
        self._audit.log_tool_call(
            self._tool_name,
            self._tool_input,
            account_id=account_id,
            duration_ms=round(self.elapsed_ms, 1),
            status=status,
            error_type=error_type,
            metadata=metadata,
        )

    def fail_with(self, exc: Exception, *, account_id: str | None = None) -> str:
        """Audit a handled domain error and return its error payload."""
        self.failure(exc, account_id=account_id)
        logger.info("%s failed: %s", self._tool_name, error_code(exc))
        return error_response(error_code(exc), str(exc))
