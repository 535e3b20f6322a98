"""Recurrence patterns for repeating user-submitted events.

Two pattern families are supported:

* weekly  - ``every-<weekday>``, e.g. ``every-tuesday``
* monthly - ``<first|second|third|fourth|fifth|last>-<weekday>``,
  e.g. ``last-friday``
"""
import calendar
import re
from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Optional

WEEKDAYS = {name.lower(): index for index, name in enumerate(calendar.day_name)}
OCCURRENCES = {'first': 1, 'second': 2, 'third': 3, 'fourth': 4, 'fifth': 5, 'last': -1}

PATTERN_RE = re.compile(
    r'^(every|first|second|third|fourth|fifth|last)-'
    r'(monday|tuesday|wednesday|thursday|friday|saturday|sunday)$'
)

DEFAULT_MONTHS_AHEAD = 6


@dataclass
class RecurrencePattern:
    kind: str
    weekday: int
    occurrence: Optional[int] = None


def parse_pattern(pattern: Optional[str]) -> Optional[RecurrencePattern]:
    """Parse a pattern string, returning None when it is not recognised."""
    if not pattern:
        return None
    match = PATTERN_RE.match(pattern.strip().lower())
    if not match:
        return None
    prefix, day = match.groups()
    if prefix == 'every':
        return RecurrencePattern(kind='weekly', weekday=WEEKDAYS[day])
    return RecurrencePattern(kind='monthly', weekday=WEEKDAYS[day], occurrence=OCCURRENCES[prefix])


def is_valid_pattern(pattern: Optional[str]) -> bool:
    return parse_pattern(pattern) is not None


def add_months(day: date, months: int) -> date:
    """Shift a date by whole months, clamping to the target month's length."""
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def nth_weekday(year: int, month: int, weekday: int, occurrence: int) -> Optional[date]:
    """
    Find the nth weekday of a month.

    Args:
        year: Calendar year
        month: Calendar month (1-12)
        weekday: Monday=0 ... Sunday=6
        occurrence: 1-5, or -1 for the last one in the month

    Returns:
        The date, or None when the month has no such occurrence
    """
    days_in_month = calendar.monthrange(year, month)[1]
    if occurrence == -1:
        last = date(year, month, days_in_month)
        return last - timedelta(days=(last.weekday() - weekday) % 7)

    first = date(year, month, 1)
    day = 1 + (weekday - first.weekday()) % 7 + 7 * (occurrence - 1)
    if day > days_in_month:
        return None
    return date(year, month, day)


def generate_occurrences(
    start: date,
    pattern: str,
    today: date,
    until: Optional[date] = None,
    months_ahead: int = DEFAULT_MONTHS_AHEAD,
) -> List[date]:
    """
    Expand a recurring event into concrete dates.

    Dates run from the later of ``start`` and ``today`` through ``until``
    (or ``months_ahead`` months from today when no end date is set).
    """
    parsed = parse_pattern(pattern)
    if parsed is None:
        return []

    end = until or add_months(today, months_ahead)
    begin = max(start, today)
    dates: List[date] = []

    if parsed.kind == 'weekly':
        current = begin + timedelta(days=(parsed.weekday - begin.weekday()) % 7)
        while current <= end:
            dates.append(current)
            current += timedelta(days=7)
        return dates

    month_start = begin.replace(day=1)
    while month_start <= end:
        occurrence = nth_weekday(month_start.year, month_start.month, parsed.weekday, parsed.occurrence)
        if occurrence and begin <= occurrence <= end:
            dates.append(occurrence)
        month_start = add_months(month_start, 1)
    return dates


def next_occurrence(pattern: str, today: date) -> Optional[date]:
    """First occurrence strictly after today, used to seed a new recurring event."""
    parsed = parse_pattern(pattern)
    if parsed is None:
        return None

    if parsed.kind == 'weekly':
        days_ahead = (parsed.weekday - today.weekday()) % 7 or 7
        return today + timedelta(days=days_ahead)

    candidate = nth_weekday(today.year, today.month, parsed.weekday, parsed.occurrence)
    if candidate is None or candidate <= today:
        following = add_months(today.replace(day=1), 1)
        candidate = nth_weekday(following.year, following.month, parsed.weekday, parsed.occurrence)
    return candidate
