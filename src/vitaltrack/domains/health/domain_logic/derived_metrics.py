"""Derived metrics: BMI, daily goal progress and display formatting.

Everything here is a pure function over values that are already loaded.
Per-kind tables are exhaustive over ``MetricKind``; a table missing a kind
fails at import rather than falling back to a default at runtime.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

from vitaltrack.core.storage.models import MetricKind


def require_every_kind(table: Mapping[MetricKind, Any], name: str) -> None:
    missing = set(MetricKind) - set(table)
    if missing:
        raise RuntimeError(f"{name} has no entry for: {sorted(k.value for k in missing)}")


# ---------------------------------------------------------------------------
# Daily targets
# ---------------------------------------------------------------------------

DAILY_TARGETS: dict[MetricKind, float] = {
    MetricKind.STEPS: 10000,
    MetricKind.WATER: 8,  # glasses
    MetricKind.SLEEP: 8,  # hours
    MetricKind.MEALS: 2000,  # kcal
    MetricKind.HEART_RATE: 80,  # bpm
    MetricKind.MOOD: 5,
}

TARGET_DISPLAY: dict[MetricKind, str] = {
    MetricKind.STEPS: "10,000",
    MetricKind.WATER: "8",
    MetricKind.SLEEP: "8h",
    MetricKind.MEALS: "2,000",
    MetricKind.HEART_RATE: "60-100",
    MetricKind.MOOD: "Good",
}

DISPLAY_NAMES: dict[MetricKind, str] = {
    MetricKind.STEPS: "Steps",
    MetricKind.WATER: "Water",
    MetricKind.SLEEP: "Sleep",
    MetricKind.MEALS: "Calories",
    MetricKind.HEART_RATE: "Heart Rate",
    MetricKind.MOOD: "Mood",
}

# Index is the stored mood value (1-5)
MOOD_SCALE = ["", "😢", "😐", "🙂", "😊", "🤩"]
NEUTRAL_MOOD = "😐"

require_every_kind(DAILY_TARGETS, "DAILY_TARGETS")
require_every_kind(TARGET_DISPLAY, "TARGET_DISPLAY")
require_every_kind(DISPLAY_NAMES, "DISPLAY_NAMES")


def progress_ratio(kind: MetricKind, value: float) -> float:
    """Fraction of the daily target reached, clamped to ``[0, 1]``."""
    target = DAILY_TARGETS[MetricKind(kind)]
    if target == 0:
        return 0.0
    return max(0.0, min(value / target, 1.0))


# ---------------------------------------------------------------------------
# BMI
# ---------------------------------------------------------------------------

class BMICategory(str, Enum):
    UNDERWEIGHT = "Underweight"
    NORMAL = "Normal"
    OVERWEIGHT = "Overweight"
    OBESE = "Obese"


def _positive_number(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number) or number <= 0:
        return None
    return number


def bmi(height_cm: Any, weight_kg: Any) -> float:
    """Body mass index, or ``0.0`` when either input is unusable.

    Never raises: missing, non-numeric and non-positive inputs all yield 0.
    """
    height = _positive_number(height_cm)
    weight = _positive_number(weight_kg)
    if height is None or weight is None:
        return 0.0
    meters = height / 100
    return weight / (meters * meters)


def bmi_category(value: float) -> BMICategory:
    """WHO bands; each band includes its lower bound (18.5 is Normal)."""
    if value < 18.5:
        return BMICategory.UNDERWEIGHT
    if value < 25:
        return BMICategory.NORMAL
    if value < 30:
        return BMICategory.OVERWEIGHT
    return BMICategory.OBESE


def format_bmi(value: float) -> str:
    return f"{value:.1f}"


# ---------------------------------------------------------------------------
# Display
# ---------------------------------------------------------------------------

def _number(value: float) -> str:
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value)


def format_value(kind: MetricKind, value: float) -> str:
    kind = MetricKind(kind)
    if kind in (MetricKind.STEPS, MetricKind.MEALS):
        if isinstance(value, float) and not value.is_integer():
            return f"{value:,}"
        return f"{int(value):,}"
    if kind is MetricKind.SLEEP:
        return f"{_number(value)}h"
    if kind is MetricKind.MOOD:
        index = int(value) if float(value).is_integer() else -1
        if 0 < index < len(MOOD_SCALE):
            return MOOD_SCALE[index]
        return NEUTRAL_MOOD
    return _number(value)


@dataclass
class MetricCard:
    """One dashboard entry for a kind logged today."""

    kind: MetricKind
    title: str
    value: str
    target: str
    progress: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.kind.value,
            "title": self.title,
            "value": self.value,
            "target": self.target,
            "progress": round(self.progress, 4),
        }


def describe_snapshot(snapshot: Mapping[MetricKind, float]) -> list[MetricCard]:
    """Dashboard cards for the kinds present in a today-snapshot."""
    return [
        MetricCard(
            kind=kind,
            title=DISPLAY_NAMES[kind],
            value=format_value(kind, value),
            target=TARGET_DISPLAY[kind],
            progress=progress_ratio(kind, value),
        )
        for kind, value in snapshot.items()
    ]
