"""
Tests for the duration calculator.
"""

import pytest
from decimal import Decimal

from club_billing.engine.duration import (
    billable_minutes,
    duration_hours,
    intervals_overlap,
    minutes_between,
    parse_clock_time,
    session_interval,
)
from club_billing.engine.errors import InvalidTimeRangeError
from club_billing.models.billing import SetupMode


class TestParseClockTime:
    """Tests for wall-clock parsing."""

    def test_parse_hours_and_minutes(self):
        """Test HH:MM becomes minutes since midnight."""
        assert parse_clock_time("18:00") == 1080
        assert parse_clock_time("00:00") == 0
        assert parse_clock_time("23:59") == 1439

    def test_single_digit_hour(self):
        """Test that a single-digit hour is accepted."""
        assert parse_clock_time("7:05") == 425

    def test_seconds_ignored(self):
        """Test that HH:MM:SS from the data store is accepted."""
        assert parse_clock_time("07:05:59") == 425

    @pytest.mark.parametrize("value", ["", "abc", "1800", "24:00", "18:60", "18:00:60", "-1:00"])
    def test_malformed_times_rejected(self, value):
        """Test that malformed times raise InvalidTimeRangeError."""
        with pytest.raises(InvalidTimeRangeError):
            parse_clock_time(value)

    def test_non_string_rejected(self):
        """Test that only strings are parsed."""
        with pytest.raises(InvalidTimeRangeError):
            parse_clock_time(None)


class TestMinutesBetween:
    """Tests for session length."""

    def test_same_day(self):
        """Test a session within one day."""
        assert minutes_between("18:00", "19:30") == 90

    def test_crosses_midnight(self):
        """Test that an earlier end means the next day."""
        assert minutes_between("23:00", "00:30") == 90
        assert minutes_between("22:00", "06:00") == 480

    def test_start_equals_end_rejected(self):
        """Test that an empty session is an error, not 0 or 24 hours."""
        with pytest.raises(InvalidTimeRangeError) as exc_info:
            minutes_between("18:00", "18:00")
        assert exc_info.value.start == "18:00"
        assert exc_info.value.code == "invalid_time_range"

    def test_equal_with_seconds_rejected(self):
        """Test that seconds don't make two equal times different."""
        with pytest.raises(InvalidTimeRangeError):
            minutes_between("18:00:00", "18:00:30")


class TestDurationHours:
    """Tests for billable hours."""

    def test_fractional_hours(self):
        """Test 90 minutes is 1.5 hours."""
        assert duration_hours("18:00", "19:30") == Decimal("1.5")

    def test_setup_as_bonus_does_not_add_time(self):
        """Test BONUS mode leaves the duration alone."""
        hours = duration_hours("18:00", "19:30", setup=True, setup_mode=SetupMode.BONUS)
        assert hours == Decimal("1.5")

    def test_setup_as_extra_time(self):
        """Test EXTRA_TIME mode adds half an hour by default."""
        hours = duration_hours("23:00", "00:30", setup=True, setup_mode=SetupMode.EXTRA_TIME)
        assert hours == Decimal("2")

    def test_custom_extra_setup_hours(self):
        """Test a configured setup allowance."""
        minutes = billable_minutes(
            "18:00",
            "19:00",
            setup=True,
            setup_mode=SetupMode.EXTRA_TIME,
            extra_setup_hours=Decimal("0.25"),
        )
        assert minutes == Decimal("75")

    def test_extra_time_without_setup(self):
        """Test that no setup means no extra time."""
        hours = duration_hours("18:00", "19:00", setup=False, setup_mode=SetupMode.EXTRA_TIME)
        assert hours == Decimal("1")


class TestIntervals:
    """Tests for interval helpers used by conflict detection."""

    def test_interval_crossing_midnight(self):
        """Test the end is past 1440 for overnight sessions."""
        assert session_interval("23:00", "00:30") == (1380, 1470)

    def test_touching_intervals_do_not_overlap(self):
        """Test that back-to-back sessions are not an overlap."""
        assert intervals_overlap((1080, 1170), (1170, 1260)) is False

    def test_overlap_is_symmetric(self):
        """Test overlap in both directions."""
        first, second = (1080, 1170), (1140, 1200)
        assert intervals_overlap(first, second) is True
        assert intervals_overlap(second, first) is True

    def test_contained_interval(self):
        """Test that a contained interval overlaps."""
        assert intervals_overlap((1380, 1470), (1410, 1425)) is True


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
