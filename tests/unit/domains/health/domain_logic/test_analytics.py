"""Tests for period analytics over stored records."""

from __future__ import annotations

from datetime import date

from vitaltrack.core.storage.models import HealthRecord, MetricKind
from vitaltrack.domains.health.domain_logic.analytics import (
    current_streak,
    group_by_date,
    summarize_period,
)


def _record(day: date, kind: MetricKind, value: float) -> HealthRecord:
    return HealthRecord(
        id=f"{day.isoformat()}-{kind.value}",
        user_id="u1",
        kind=kind,
        value=value,
        day=day,
        timestamp="",
    )


class TestGroupByDate:
    def test_grouped_and_sorted(self):
        records = [
            _record(date(2024, 1, 3), MetricKind.STEPS, 3000),
            _record(date(2024, 1, 1), MetricKind.STEPS, 1000),
            _record(date(2024, 1, 1), MetricKind.WATER, 4),
        ]
        grouped = group_by_date(records)
        assert list(grouped) == ["2024-01-01", "2024-01-03"]
        assert grouped["2024-01-01"] == {MetricKind.STEPS: 1000, MetricKind.WATER: 4}


class TestSummarizePeriod:
    def test_empty(self):
        summary = summarize_period([])
        assert summary.days_with_data == 0
        assert summary.to_dict() == {
            "days_with_data": 0,
            "total_steps": 0,
            "avg_water": 0.0,
            "avg_sleep": 0.0,
            "total_calories": 0,
        }

    def test_totals_and_averages(self):
        records = [
            _record(date(2024, 1, 1), MetricKind.STEPS, 4000),
            _record(date(2024, 1, 1), MetricKind.WATER, 6),
            _record(date(2024, 1, 1), MetricKind.SLEEP, 7),
            _record(date(2024, 1, 2), MetricKind.STEPS, 6000),
            _record(date(2024, 1, 2), MetricKind.MEALS, 1800),
            _record(date(2024, 1, 2), MetricKind.SLEEP, 8),
        ]
        summary = summarize_period(records)
        assert summary.days_with_data == 2
        assert summary.total_steps == 10000
        # Day 2 has no water: it counts as 0
        assert summary.avg_water == 3
        assert summary.avg_sleep == 7.5
        assert summary.total_calories == 1800

    def test_averages_rounded_in_dict(self):
        records = [
            _record(date(2024, 1, d), MetricKind.SLEEP, v)
            for d, v in ((1, 7), (2, 7), (3, 8))
        ]
        assert summarize_period(records).to_dict()["avg_sleep"] == 7.3


class TestCurrentStreak:
    def test_consecutive_days_ending_today(self):
        records = [_record(date(2024, 1, d), MetricKind.WATER, 8) for d in (1, 2, 3)]
        assert current_streak(records, MetricKind.WATER, date(2024, 1, 3)) == 3

    def test_gap_breaks_streak(self):
        records = [_record(date(2024, 1, d), MetricKind.WATER, 8) for d in (1, 3)]
        assert current_streak(records, MetricKind.WATER, date(2024, 1, 3)) == 1

    def test_nothing_today_is_zero(self):
        records = [_record(date(2024, 1, 1), MetricKind.WATER, 8)]
        assert current_streak(records, MetricKind.WATER, date(2024, 1, 2)) == 0

    def test_other_kinds_ignored(self):
        records = [
            _record(date(2024, 1, 1), MetricKind.STEPS, 1),
            _record(date(2024, 1, 2), MetricKind.WATER, 1),
        ]
        assert current_streak(records, MetricKind.WATER, date(2024, 1, 2)) == 1
