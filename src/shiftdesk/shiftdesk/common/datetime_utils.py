from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Protocol

from ..core.constants import MINUTES_PER_DAY


class Clock(Protocol):
    def now(self) -> datetime:
        raise NotImplementedError


class SystemClock:
    """Wall clock used in production.

    Note: Services take a Clock so tests can pin "now" (and therefore "today").
    """

    def now(self) -> datetime:
        return datetime.now().replace(microsecond=0)


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def minutes_between(start: datetime, end: datetime) -> int:
    """Whole minutes elapsed from start to end (floored, never negative)."""
    seconds = (end - start).total_seconds()
    if seconds <= 0:
        return 0
    return int(seconds // 60)


def shift_start_on(work_date: date, start_time: time) -> datetime:
    return datetime.combine(work_date, start_time)


def shift_duration_minutes(start_time: time, end_time: time) -> int:
    """Scheduled length of a shift; end <= start means it ends the next day."""
    start = start_time.hour * 60 + start_time.minute
    end = end_time.hour * 60 + end_time.minute
    if end <= start:
        end += MINUTES_PER_DAY
    return end - start


def within_window(moment: time, start: time, end: time) -> bool:
    """True when moment lies in [start, end], handling windows across midnight."""
    if start <= end:
        return start <= moment <= end
    return moment >= start or moment <= end


def day_bounds(day: date) -> tuple[datetime, datetime]:
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)
