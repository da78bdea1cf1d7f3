"""Period analytics over stored health records.

Groups a range query's records by day and reduces them to the summary the
analytics view shows: totals for steps and calories, averages for water and
sleep, plus daily logging streaks.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Iterable

from vitaltrack.core.storage.models import HealthRecord, MetricKind


@dataclass
class PeriodSummary:
    """Aggregates over the days that have at least one record."""

    days_with_data: int
    total_steps: float
    avg_water: float
    avg_sleep: float
    total_calories: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "days_with_data": self.days_with_data,
            "total_steps": self.total_steps,
            "avg_water": round(self.avg_water, 1),
            "avg_sleep": round(self.avg_sleep, 1),
            "total_calories": self.total_calories,
        }


def group_by_date(records: Iterable[HealthRecord]) -> dict[str, dict[MetricKind, float]]:
    """Map ISO date -> {kind: value}, ordered chronologically."""
    grouped: dict[str, dict[MetricKind, float]] = {}
    for record in records:
        grouped.setdefault(record.day.isoformat(), {})[record.kind] = record.value
    return dict(sorted(grouped.items()))


def summarize_period(records: Iterable[HealthRecord]) -> PeriodSummary:
    """Summarize a period; days missing a kind count as 0 for that kind."""
    grouped = group_by_date(records)
    days = list(grouped.values())
    if not days:
        return PeriodSummary(0, 0, 0.0, 0.0, 0)

    water = [d.get(MetricKind.WATER, 0) for d in days]
    sleep = [d.get(MetricKind.SLEEP, 0) for d in days]
    return PeriodSummary(
        days_with_data=len(days),
        total_steps=sum(d.get(MetricKind.STEPS, 0) for d in days),
        avg_water=sum(water) / len(water),
        avg_sleep=sum(sleep) / len(sleep),
        total_calories=sum(d.get(MetricKind.MEALS, 0) for d in days),
    )


def current_streak(records: Iterable[HealthRecord], kind: MetricKind, today: date) -> int:
    """Consecutive days, ending today, on which ``kind`` was logged."""
    logged = {r.day for r in records if r.kind == kind}
    streak = 0
    day = today
    while day in logged:
        streak += 1
        day -= timedelta(days=1)
    return streak
