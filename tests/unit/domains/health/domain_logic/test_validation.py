"""Tests for input validation on the tool surface."""

from __future__ import annotations

import pytest

from vitaltrack.core.storage.models import MetricKind
from vitaltrack.domains.health.domain_logic.validation import (
    ValidationError,
    normalize_email,
    parse_kind,
    validate_email,
    validate_observation,
    validate_profile_changes,
    validate_registration,
)


class TestEmail:
    def test_normalized(self):
        assert normalize_email("  Ada@Example.COM ") == "ada@example.com"

    def test_valid(self):
        assert validate_email("Ada@Example.com") == "ada@example.com"

    @pytest.mark.parametrize("email", ["ada", "ada@", "ada@example", "a da@example.com"])
    def test_invalid(self, email):
        with pytest.raises(ValidationError, match="valid email"):
            validate_email(email)

    def test_blank(self):
        with pytest.raises(ValidationError, match="enter your email"):
            validate_email("   ")


class TestRegistration:
    def test_cleaned(self):
        assert validate_registration(" Ada ", "ADA@example.com", "secret1") == (
            "Ada",
            "ada@example.com",
        )

    def test_short_password(self):
        with pytest.raises(ValidationError, match="at least 6"):
            validate_registration("Ada", "ada@example.com", "12345")

    def test_blank_name(self):
        with pytest.raises(ValidationError, match="full name"):
            validate_registration("  ", "ada@example.com", "secret1")

    def test_validation_error_is_value_error(self):
        with pytest.raises(ValueError):
            validate_registration("", "", "")


class TestParseKind:
    def test_known(self):
        assert parse_kind("heartRate") is MetricKind.HEART_RATE

    def test_unknown(self):
        with pytest.raises(ValidationError, match="Unknown metric type"):
            parse_kind("blood_pressure")


class TestObservation:
    def test_whole_number_kinds_return_int(self):
        value = validate_observation(MetricKind.STEPS, 5000.0)
        assert value == 5000
        assert isinstance(value, int)

    def test_sleep_may_be_fractional(self):
        assert validate_observation(MetricKind.SLEEP, 7.5) == 7.5

    def test_fractional_steps_rejected(self):
        with pytest.raises(ValidationError, match="whole number"):
            validate_observation(MetricKind.STEPS, 10.5)

    @pytest.mark.parametrize("kind, value", [
        (MetricKind.STEPS, -1),
        (MetricKind.SLEEP, 25),
        (MetricKind.HEART_RATE, 301),
        (MetricKind.MOOD, 0),
        (MetricKind.MOOD, 6),
    ])
    def test_out_of_range(self, kind, value):
        with pytest.raises(ValidationError):
            validate_observation(kind, value)

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), "abc", None, True])
    def test_non_numbers_rejected(self, value):
        with pytest.raises(ValidationError):
            validate_observation(MetricKind.WATER, value)

    def test_bounds_inclusive(self):
        assert validate_observation(MetricKind.SLEEP, 24) == 24
        assert validate_observation(MetricKind.MOOD, 1) == 1
        assert validate_observation(MetricKind.HEART_RATE, 300) == 300


class TestProfileChanges:
    def test_ranges(self):
        cleaned = validate_profile_changes({"age": 36.0, "height": 170, "weight": 60})
        assert cleaned == {"age": 36, "height": 170.0, "weight": 60.0}
        assert isinstance(cleaned["age"], int)

    @pytest.mark.parametrize("field, value", [
        ("age", 0), ("age", 121), ("height", 49), ("height", 301),
        ("weight", 19), ("weight", 501),
    ])
    def test_out_of_range(self, field, value):
        with pytest.raises(ValidationError, match=field):
            validate_profile_changes({field: value})

    def test_none_kept_to_clear(self):
        assert validate_profile_changes({"age": None}) == {"age": None}

    def test_email_normalized(self):
        assert validate_profile_changes({"email": "ADA@example.com"}) == {
            "email": "ada@example.com"
        }

    def test_blank_name_rejected(self):
        with pytest.raises(ValidationError, match="required"):
            validate_profile_changes({"name": " "})

    def test_blank_gender_clears(self):
        assert validate_profile_changes({"gender": "  "}) == {"gender": None}
