"""
Duration Calculator

The one place wall-clock arithmetic happens. Pricing and conflict
detection both go through here, so there is exactly one midnight rule:

    minutes = (end - start) mod 1440

A session whose end is earlier than its start crosses midnight.
A session whose end equals its start is rejected.
"""

import re
from decimal import Decimal

from club_billing.engine.errors import InvalidTimeRangeError
from club_billing.models.billing import SetupMode

MINUTES_PER_DAY = 1440
MINUTES_PER_HOUR = Decimal(60)
DEFAULT_EXTRA_SETUP_HOURS = Decimal("0.5")

# HH:MM, optionally followed by :SS as the data store returns it
_CLOCK_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")


def parse_clock_time(value: str) -> int:
    """
    Parse "HH:MM" (or "HH:MM:SS") into minutes since midnight.

    Seconds are accepted and ignored.

    Raises:
        InvalidTimeRangeError: If the string is not a valid wall-clock time
    """
    if not isinstance(value, str):
        raise InvalidTimeRangeError(f"Time must be a string, got {type(value).__name__}")

    match = _CLOCK_PATTERN.match(value.strip())
    if match is None:
        raise InvalidTimeRangeError(f"Malformed time: '{value}'")

    hours, minutes = int(match.group(1)), int(match.group(2))
    seconds = int(match.group(3) or 0)
    if hours > 23 or minutes > 59 or seconds > 59:
        raise InvalidTimeRangeError(f"Time out of range: '{value}'")

    return hours * 60 + minutes


def minutes_between(start: str, end: str) -> int:
    """
    Length of a session in minutes, wrapping past midnight.

    >>> minutes_between("18:00", "19:30")
    90
    >>> minutes_between("23:00", "00:30")
    90
    """
    start_min = parse_clock_time(start)
    end_min = parse_clock_time(end)
    if start_min == end_min:
        raise InvalidTimeRangeError(
            f"Start and end are identical ({start})", start=start, end=end
        )
    return (end_min - start_min) % MINUTES_PER_DAY


def session_interval(start: str, end: str) -> tuple[int, int]:
    """
    Half-open [start, end) in minutes from midnight of the session date.

    End may exceed 1440 for sessions crossing midnight.
    """
    start_min = parse_clock_time(start)
    return start_min, start_min + minutes_between(start, end)


def intervals_overlap(first: tuple[int, int], second: tuple[int, int]) -> bool:
    """[s1, e1) and [s2, e2) overlap iff s1 < e2 and e1 > s2."""
    s1, e1 = first
    s2, e2 = second
    return s1 < e2 and e1 > s2


def billable_minutes(
    start: str,
    end: str,
    setup: bool = False,
    setup_mode: SetupMode = SetupMode.BONUS,
    extra_setup_hours: Decimal = DEFAULT_EXTRA_SETUP_HOURS,
) -> Decimal:
    """Session minutes plus setup time when setup is paid as extra time."""
    minutes = Decimal(minutes_between(start, end))
    if setup and setup_mode == SetupMode.EXTRA_TIME:
        minutes += extra_setup_hours * MINUTES_PER_HOUR
    return minutes


def duration_hours(
    start: str,
    end: str,
    setup: bool = False,
    setup_mode: SetupMode = SetupMode.BONUS,
    extra_setup_hours: Decimal = DEFAULT_EXTRA_SETUP_HOURS,
) -> Decimal:
    """
    Billable duration in fractional hours.

    Args:
        start: Wall-clock start, "HH:MM"
        end: Wall-clock end, "HH:MM"; earlier than start means next day
        setup: Whether setup work was done
        setup_mode: BONUS leaves the duration alone (the bonus is money,
                    added by the wage calculator); EXTRA_TIME adds
                    `extra_setup_hours`
        extra_setup_hours: Hours added for setup in EXTRA_TIME mode

    Returns:
        Hours as Decimal, never negative

    Raises:
        InvalidTimeRangeError: Malformed times or start == end
    """
    minutes = billable_minutes(start, end, setup, setup_mode, extra_setup_hours)
    return minutes / MINUTES_PER_HOUR
