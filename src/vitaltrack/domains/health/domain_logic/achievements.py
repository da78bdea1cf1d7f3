"""Threshold rules that turn a logged value into notification-worthy events.

The rules only decide *what* happened (goal met, progress, alert, streak).
Formatting and delivery belong to the reminder dispatcher.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable

from vitaltrack.core.storage.models import MetricKind
from vitaltrack.domains.health.domain_logic.derived_metrics import (
    DAILY_TARGETS,
    require_every_kind,
)


class AchievementType(str, Enum):
    GOAL_MET = "goal_met"
    PROGRESS = "progress"
    ALERT = "alert"
    STREAK = "streak"


@dataclass(frozen=True)
class AchievementEvent:
    """A discrete outcome of checking one logged value.

    ``label`` names the achievement (goal met), the goal (progress), the
    alert subject (alert) or the tracked kind (streak).
    """

    type: AchievementType
    kind: MetricKind
    label: str
    message: str = ""
    ratio: float | None = None
    streak_days: int | None = None


def _goal(kind: MetricKind, label: str) -> AchievementEvent:
    return AchievementEvent(AchievementType.GOAL_MET, kind, label)


def _progress(kind: MetricKind, label: str, value: float) -> AchievementEvent:
    ratio = value / DAILY_TARGETS[kind]
    return AchievementEvent(AchievementType.PROGRESS, kind, label, ratio=ratio)


def _alert(kind: MetricKind, label: str, message: str) -> AchievementEvent:
    return AchievementEvent(AchievementType.ALERT, kind, label, message=message)


def _steps(value: float) -> list[AchievementEvent]:
    if value >= 10000:
        return [_goal(MetricKind.STEPS, "10,000 Steps Goal! 🚶‍♂️")]
    if value >= 5000:
        return [_progress(MetricKind.STEPS, "Daily Steps", value)]
    return []


def _water(value: float) -> list[AchievementEvent]:
    if value >= 8:
        return [_goal(MetricKind.WATER, "8 Glasses of Water Goal! 💧")]
    if value >= 4:
        return [_progress(MetricKind.WATER, "Daily Water Intake", value)]
    return []


def _sleep(value: float) -> list[AchievementEvent]:
    if 8 <= value <= 9:
        return [_goal(MetricKind.SLEEP, "Perfect Sleep Goal! 😴")]
    if value < 6:
        return [_alert(
            MetricKind.SLEEP,
            "Sleep",
            "You slept less than 6 hours. Consider getting more rest!",
        )]
    return []


def _meals(value: float) -> list[AchievementEvent]:
    if value >= 2000:
        return [_goal(MetricKind.MEALS, "Daily Calorie Goal! 🍽️")]
    if value >= 1500:
        return [_progress(MetricKind.MEALS, "Daily Calories", value)]
    return []


def _heart_rate(value: float) -> list[AchievementEvent]:
    if 60 <= value <= 100:
        return [_goal(MetricKind.HEART_RATE, "Healthy Heart Rate! ❤️")]
    if value > 100:
        return [_alert(
            MetricKind.HEART_RATE,
            "Heart Rate",
            "Your heart rate is elevated. Consider resting or consulting a doctor.",
        )]
    return []


def _mood(value: float) -> list[AchievementEvent]:
    if value >= 4:
        return [_goal(MetricKind.MOOD, "Great Mood! 😊")]
    return []


ACHIEVEMENT_RULES: dict[MetricKind, Callable[[float], list[AchievementEvent]]] = {
    MetricKind.STEPS: _steps,
    MetricKind.WATER: _water,
    MetricKind.SLEEP: _sleep,
    MetricKind.MEALS: _meals,
    MetricKind.HEART_RATE: _heart_rate,
    MetricKind.MOOD: _mood,
}
require_every_kind(ACHIEVEMENT_RULES, "ACHIEVEMENT_RULES")


def achievement_check(kind: MetricKind, value: float) -> list[AchievementEvent]:
    """Events triggered by logging ``value`` for ``kind`` (possibly none)."""
    return ACHIEVEMENT_RULES[MetricKind(kind)](value)


# ---------------------------------------------------------------------------
# Streaks
# ---------------------------------------------------------------------------

# Consecutive logged days worth celebrating
STREAK_MILESTONES = (3, 7, 14, 30, 60, 100)


def streak_event(kind: MetricKind, streak_days: int) -> AchievementEvent | None:
    """A streak event when ``streak_days`` lands exactly on a milestone."""
    if streak_days not in STREAK_MILESTONES:
        return None
    kind = MetricKind(kind)
    return AchievementEvent(
        AchievementType.STREAK,
        kind,
        kind.value,
        streak_days=streak_days,
    )
