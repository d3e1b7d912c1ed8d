# crux/clock.py
"""
Clock capability.

Scheduling works on calendar days in one reference timezone
(``SCHEDULE_TIMEZONE``); the workout timer works on a monotonic millisecond
counter. Both are read through a ``Clock`` so tests can pin time.
"""
from __future__ import annotations

import time
from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from crux.settings import get_settings


class Clock:
    """Wall clock in the reference timezone plus a monotonic counter."""

    def __init__(self, tz: str | None = None):
        self.tz = ZoneInfo(tz or get_settings().SCHEDULE_TIMEZONE)

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def today(self) -> date:
        return self.now().astimezone(self.tz).date()

    def monotonic_ms(self) -> float:
        return time.monotonic() * 1000


class FixedClock(Clock):
    """A clock that only moves when told to."""

    def __init__(self, current: datetime, tz: str | None = None):
        super().__init__(tz)
        if current.tzinfo is None:
            current = current.replace(tzinfo=self.tz)
        self.current = current
        self._mono_ms = 0.0

    def now(self) -> datetime:
        return self.current

    def monotonic_ms(self) -> float:
        return self._mono_ms

    def advance(self, *, seconds: float = 0, days: int = 0) -> None:
        self.current = self.current + timedelta(days=days, seconds=seconds)
        self._mono_ms += seconds * 1000

    def sleep(self, seconds: float) -> None:
        # Stand-in for time.sleep when driving the workout loop
        self.advance(seconds=seconds)


_system_clock: Clock | None = None

def get_clock() -> Clock:
    """FastAPI dependency; tests swap it through ``app.dependency_overrides``."""
    global _system_clock
    if _system_clock is None:
        _system_clock = Clock()
    return _system_clock
