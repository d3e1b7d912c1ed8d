# crux/scheduling/recurrence.py
"""
Date-pattern evaluation for recurrence rules.

Everything here is pure and works on ``datetime.date``. Weekdays follow the
calendar UI convention: 0 = Sunday .. 6 = Saturday.
"""
from __future__ import annotations

import calendar
from datetime import date, timedelta
from typing import Iterator, Protocol

from crux.models.recurrence_rule import Frequency


class RuleLike(Protocol):
    start_date: date
    frequency: Frequency | str
    interval: int
    by_weekdays: list[int] | None
    until: date | None


def weekday_index(day: date) -> int:
    """Sunday-based weekday (0 = Sunday)."""
    return (day.weekday() + 1) % 7


def week_anchor(day: date) -> date:
    """The Sunday that starts ``day``'s week."""
    return day - timedelta(days=weekday_index(day))


def months_between(start: date, day: date) -> int:
    return (day.year - start.year) * 12 + (day.month - start.month)


def effective_weekdays(rule: RuleLike) -> set[int]:
    if rule.by_weekdays:
        return {int(d) for d in rule.by_weekdays}
    return {weekday_index(rule.start_date)}


def occurs_on(rule: RuleLike, day: date) -> bool:
    """True when ``rule`` fires on ``day``."""
    start = rule.start_date
    interval = max(1, int(rule.interval))

    if day < start:
        return False
    if rule.until is not None and day > rule.until:
        return False

    frequency = Frequency(rule.frequency)
    if frequency is Frequency.daily:
        return (day - start).days % interval == 0

    if frequency is Frequency.weekly:
        weeks = (week_anchor(day) - week_anchor(start)).days // 7
        if weeks % interval != 0:
            return False
        return weekday_index(day) in effective_weekdays(rule)

    # monthly: same day-of-month only, short months are skipped
    if months_between(start, day) % interval != 0:
        return False
    return day.day == start.day


def iter_days(first: date, last: date) -> Iterator[date]:
    cursor = first
    while cursor <= last:
        yield cursor
        cursor += timedelta(days=1)


def month_window(range_start: date, range_end: date) -> tuple[date, date]:
    """Widen ``[range_start, range_end]`` to whole calendar months."""
    first = range_start.replace(day=1)
    last_day = calendar.monthrange(range_end.year, range_end.month)[1]
    return first, range_end.replace(day=last_day)


def occurrences_between(rule: RuleLike, first: date, last: date) -> list[date]:
    """Firing dates of ``rule`` clipped to ``[first, last]`` and to its own lifetime."""
    lo = max(rule.start_date, first)
    hi = last if rule.until is None else min(rule.until, last)
    if hi < lo:
        return []
    return [d for d in iter_days(lo, hi) if occurs_on(rule, d)]
