"""Tests for the achievement threshold rules and streak milestones."""

from __future__ import annotations

import pytest

from vitaltrack.core.storage.models import MetricKind
from vitaltrack.domains.health.domain_logic.achievements import (
    ACHIEVEMENT_RULES,
    STREAK_MILESTONES,
    AchievementType,
    achievement_check,
    streak_event,
)


def _types(kind, value):
    return [e.type for e in achievement_check(kind, value)]


class TestRulesCoverEveryKind:
    def test_every_kind_has_rule(self):
        assert set(ACHIEVEMENT_RULES) == set(MetricKind)


class TestSteps:
    def test_goal(self):
        events = achievement_check(MetricKind.STEPS, 10000)
        assert [e.type for e in events] == [AchievementType.GOAL_MET]
        assert "10,000 Steps" in events[0].label

    def test_progress(self):
        events = achievement_check(MetricKind.STEPS, 5000)
        assert [e.type for e in events] == [AchievementType.PROGRESS]
        assert events[0].ratio == 0.5

    def test_nothing_below_half(self):
        assert achievement_check(MetricKind.STEPS, 4999) == []


class TestWater:
    @pytest.mark.parametrize("value, expected", [
        (8, [AchievementType.GOAL_MET]),
        (4, [AchievementType.PROGRESS]),
        (3, []),
    ])
    def test_thresholds(self, value, expected):
        assert _types(MetricKind.WATER, value) == expected


class TestSleep:
    @pytest.mark.parametrize("value, expected", [
        (8, [AchievementType.GOAL_MET]),
        (9, [AchievementType.GOAL_MET]),
        (9.5, []),
        (7, []),
        (6, []),
        (5.9, [AchievementType.ALERT]),
    ])
    def test_thresholds(self, value, expected):
        assert _types(MetricKind.SLEEP, value) == expected

    def test_alert_message(self):
        event = achievement_check(MetricKind.SLEEP, 4)[0]
        assert event.label == "Sleep"
        assert "less than 6 hours" in event.message


class TestMeals:
    @pytest.mark.parametrize("value, expected", [
        (2000, [AchievementType.GOAL_MET]),
        (1500, [AchievementType.PROGRESS]),
        (1499, []),
    ])
    def test_thresholds(self, value, expected):
        assert _types(MetricKind.MEALS, value) == expected


class TestHeartRate:
    @pytest.mark.parametrize("value, expected", [
        (60, [AchievementType.GOAL_MET]),
        (100, [AchievementType.GOAL_MET]),
        (101, [AchievementType.ALERT]),
        (59, []),
    ])
    def test_thresholds(self, value, expected):
        assert _types(MetricKind.HEART_RATE, value) == expected


class TestMood:
    @pytest.mark.parametrize("value, expected", [
        (4, [AchievementType.GOAL_MET]),
        (5, [AchievementType.GOAL_MET]),
        (3, []),
    ])
    def test_thresholds(self, value, expected):
        assert _types(MetricKind.MOOD, value) == expected


class TestStreaks:
    @pytest.mark.parametrize("days", STREAK_MILESTONES)
    def test_milestone_produces_event(self, days):
        event = streak_event(MetricKind.WATER, days)
        assert event.type is AchievementType.STREAK
        assert event.streak_days == days
        assert event.label == "water"

    @pytest.mark.parametrize("days", [0, 1, 2, 4, 8, 31])
    def test_between_milestones_is_none(self, days):
        assert streak_event(MetricKind.WATER, days) is None
