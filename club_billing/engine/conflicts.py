"""
Conflict Detector

Flags suspicious or inconsistent sessions before they are billed.

Rules are applied independently; every rule that matches is reported:
1. Exact duplicate of another entry
2. Overlap on the same field: different sport, or two lead trainers
3. Session falls on a holiday/break
4. Session deviates from the standard schedule of its sport

IMPORTANT: Conflicts are warnings for a human reviewer. They never
block pricing and never change an entry.
"""

from datetime import date
from typing import Iterable
from uuid import UUID

import structlog

from club_billing.engine.duration import (
    intervals_overlap,
    parse_clock_time,
    session_interval,
)
from club_billing.engine.errors import InvalidTimeRangeError
from club_billing.models.billing import (
    Conflict,
    ConflictKind,
    Role,
    StandardScheduleRule,
    TimeEntry,
)

logger = structlog.get_logger(__name__)

MSG_DUPLICATE = "duplicate entry"
MSG_DIFFERENT_SPORT = "different sport on same field"
MSG_TWO_LEAD_TRAINERS = "two lead trainers simultaneously"
MSG_HOLIDAY = "falls on a holiday/break"
MSG_SCHEDULE_DEVIATION = "deviates from standard schedule"


def club_weekday(on_date: date) -> int:
    """Weekday with 0 = Sunday ... 6 = Saturday."""
    return (on_date.weekday() + 1) % 7


def _same_times(entry: TimeEntry, other: TimeEntry) -> bool:
    """Compare start and end by minute, so "18:00" equals "18:00:00"."""
    try:
        return (
            parse_clock_time(entry.start_time) == parse_clock_time(other.start_time)
            and parse_clock_time(entry.end_time) == parse_clock_time(other.end_time)
        )
    except InvalidTimeRangeError:
        return False


def _is_duplicate(entry: TimeEntry, other: TimeEntry) -> bool:
    return (
        entry.trainer_id == other.trainer_id
        and entry.entry_date == other.entry_date
        and entry.sport == other.sport
        and entry.field_id == other.field_id
        and _same_times(entry, other)
    )


def _field_conflicts(
    entry: TimeEntry,
    interval: tuple[int, int],
    other: TimeEntry,
) -> list[Conflict]:
    if other.entry_date != entry.entry_date or other.field_id != entry.field_id:
        return []

    try:
        other_interval = session_interval(other.start_time, other.end_time)
    except InvalidTimeRangeError:
        # reported when that entry itself is checked
        logger.debug("conflict_check_skipped_invalid_entry", entry_id=str(other.id))
        return []

    if not intervals_overlap(interval, other_interval):
        return []

    found = []
    if entry.sport != other.sport:
        found.append(Conflict(
            kind=ConflictKind.DIFFERENT_SPORT,
            message=MSG_DIFFERENT_SPORT,
            other_entry_id=other.id,
        ))
    if entry.role == Role.TRAINER and other.role == Role.TRAINER:
        found.append(Conflict(
            kind=ConflictKind.TWO_LEAD_TRAINERS,
            message=MSG_TWO_LEAD_TRAINERS,
            other_entry_id=other.id,
        ))
    return found


def _deviates_from_schedule(
    entry: TimeEntry,
    standard_schedules: Iterable[StandardScheduleRule],
) -> bool:
    weekday = club_weekday(entry.entry_date)
    applicable = [
        rule for rule in standard_schedules
        if rule.sport == entry.sport
        and rule.weekday == weekday
        and rule.covers(entry.entry_date)
    ]
    if not applicable:
        return False

    start = parse_clock_time(entry.start_time)
    end = parse_clock_time(entry.end_time)
    return not any(
        parse_clock_time(rule.start_time) == start
        and parse_clock_time(rule.end_time) == end
        for rule in applicable
    )


def detect_conflicts(
    entry: TimeEntry,
    all_entries: Iterable[TimeEntry],
    holidays: Iterable[date],
    standard_schedules: Iterable[StandardScheduleRule],
) -> list[Conflict]:
    """
    Run all conflict rules for one entry.

    `all_entries` may contain the entry itself; it is skipped by id.
    Other entries with malformed times are skipped for the overlap rule.

    Returns:
        Conflicts in rule order (duplicates, field overlaps, holiday,
        schedule), one per matching other entry.

    Raises:
        InvalidTimeRangeError: If `entry` itself has malformed times
    """
    interval = session_interval(entry.start_time, entry.end_time)
    others = [other for other in all_entries if other.id != entry.id]

    duplicates = [
        Conflict(kind=ConflictKind.DUPLICATE, message=MSG_DUPLICATE, other_entry_id=other.id)
        for other in others
        if _is_duplicate(entry, other)
    ]

    overlaps = []
    for other in others:
        overlaps.extend(_field_conflicts(entry, interval, other))

    conflicts = duplicates + overlaps

    if entry.entry_date in set(holidays):
        conflicts.append(Conflict(kind=ConflictKind.HOLIDAY, message=MSG_HOLIDAY))

    if _deviates_from_schedule(entry, standard_schedules):
        conflicts.append(Conflict(
            kind=ConflictKind.SCHEDULE_DEVIATION,
            message=MSG_SCHEDULE_DEVIATION,
        ))

    return conflicts


def find_conflicts(
    entry: TimeEntry,
    all_entries: Iterable[TimeEntry],
    holidays: Iterable[date],
    standard_schedules: Iterable[StandardScheduleRule],
) -> list[str]:
    """
    Human-readable conflict warnings for one entry.

    Each message appears once, in rule order. An empty list means
    no conflict.
    """
    messages: list[str] = []
    for conflict in detect_conflicts(entry, all_entries, holidays, standard_schedules):
        if conflict.message not in messages:
            messages.append(conflict.message)
    return messages


def conflict_report(
    entries: Iterable[TimeEntry],
    holidays: Iterable[date],
    standard_schedules: Iterable[StandardScheduleRule],
    include_clean: bool = False,
) -> dict[UUID, list[str]]:
    """
    Check every entry of a batch against the whole batch.

    Entries with malformed times get their time-range error as the
    single message instead of failing the whole report.

    Args:
        include_clean: Also list entries without conflicts (empty list)

    Returns:
        {entry_id: [messages]} in input order
    """
    batch = list(entries)
    holiday_set = frozenset(holidays)
    schedules = list(standard_schedules)

    report: dict[UUID, list[str]] = {}
    for entry in batch:
        try:
            messages = find_conflicts(entry, batch, holiday_set, schedules)
        except InvalidTimeRangeError as e:
            messages = [f"invalid time range: {e}"]
        if messages or include_clean:
            report[entry.id] = messages

    logger.debug(
        "conflict_report_built",
        entries=len(batch),
        conflicting=sum(1 for messages in report.values() if messages),
    )
    return report
