"""Input validation for the tool surface.

The stores accept whatever they are given; range and shape checks happen
here, before a call reaches them.
"""

from __future__ import annotations

import math
import re
from typing import Any

from vitaltrack.core.storage.models import MetricKind


class ValidationError(ValueError):
    """Raised when user input is outside the accepted shape or range."""


_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

MIN_PASSWORD_LENGTH = 6

# Inclusive (low, high); None means unbounded
OBSERVATION_RANGES: dict[MetricKind, tuple[float, float | None]] = {
    MetricKind.STEPS: (0, None),
    MetricKind.WATER: (0, None),
    MetricKind.SLEEP: (0, 24),
    MetricKind.MEALS: (0, None),
    MetricKind.HEART_RATE: (0, 300),
    MetricKind.MOOD: (1, 5),
}

WHOLE_NUMBER_KINDS = frozenset({
    MetricKind.STEPS,
    MetricKind.WATER,
    MetricKind.MEALS,
    MetricKind.HEART_RATE,
    MetricKind.MOOD,
})

PROFILE_RANGES: dict[str, tuple[float, float]] = {
    "age": (1, 120),
    "height": (50, 300),  # cm
    "weight": (20, 500),  # kg
}


def normalize_email(email: str) -> str:
    return email.strip().lower()


def validate_email(email: str) -> str:
    email = normalize_email(email)
    if not email:
        raise ValidationError("Please enter your email")
    if not _EMAIL_RE.match(email):
        raise ValidationError("Please enter a valid email address")
    return email


def validate_registration(name: str, email: str, password: str) -> tuple[str, str]:
    """Return the cleaned (name, email) pair."""
    if not name or not name.strip():
        raise ValidationError("Please enter your full name")
    email = validate_email(email)
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )
    return name.strip(), email


def parse_kind(kind: str) -> MetricKind:
    try:
        return MetricKind(kind)
    except ValueError:
        valid = ", ".join(k.value for k in MetricKind)
        raise ValidationError(f"Unknown metric type {kind!r}. Valid: {valid}") from None


def _finite(value: Any, what: str) -> float:
    if isinstance(value, bool):
        raise ValidationError(f"Please enter a valid {what}")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Please enter a valid {what}") from None
    if not math.isfinite(number):
        raise ValidationError(f"Please enter a valid {what}")
    return number


def validate_observation(kind: MetricKind, value: Any) -> float:
    """Check a logged value against its kind's range and return it as a number."""
    kind = MetricKind(kind)
    number = _finite(value, kind.value)
    low, high = OBSERVATION_RANGES[kind]
    if number < low or (high is not None and number > high):
        bound = f"{low:g}-{high:g}" if high is not None else f">= {low:g}"
        raise ValidationError(f"Please enter a valid {kind.value} value ({bound})")
    if kind in WHOLE_NUMBER_KINDS:
        if not number.is_integer():
            raise ValidationError(f"Please enter a whole number for {kind.value}")
        return int(number)
    return number


def validate_profile_changes(changes: dict[str, Any]) -> dict[str, Any]:
    """Validate a partial profile update and return the cleaned changes.

    ``None`` values are kept: they clear the field.
    """
    cleaned = dict(changes)
    if "name" in cleaned:
        name = cleaned["name"]
        if not name or not str(name).strip():
            raise ValidationError("Name and email are required")
        cleaned["name"] = str(name).strip()
    if "email" in cleaned:
        if not cleaned["email"]:
            raise ValidationError("Name and email are required")
        cleaned["email"] = validate_email(cleaned["email"])
    if "password" in cleaned and len(cleaned["password"] or "") < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )
    for field, (low, high) in PROFILE_RANGES.items():
        value = cleaned.get(field)
        if value is None:
            continue
        number = _finite(value, field)
        if not low <= number <= high:
            raise ValidationError(f"Please enter a valid {field} ({low:g}-{high:g})")
        cleaned[field] = int(number) if field == "age" else number
    if "gender" in cleaned and cleaned["gender"] is not None:
        cleaned["gender"] = str(cleaned["gender"]).strip() or None
    return cleaned
