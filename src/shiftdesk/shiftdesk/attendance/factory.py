from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta

from ..common.datetime_utils import minutes_between, shift_start_on
from ..shifts.model import Shift
from .strategies.base import AttendanceStrategy
from .strategies.late_strategy import LateStrategy
from .strategies.normal_strategy import NormalStrategy
from .strategies.overtime_strategy import OvertimeStrategy


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: choose appropriate strategy based on rules."""

    @staticmethod
    def shift_start_for(*, now: datetime, today: date, shift: Shift) -> datetime:
        """Start of the shift occurrence ``now`` belongs to.

        Past midnight, an overnight shift still counts from yesterday's start.
        """
        if shift.crosses_midnight and now.time() < shift.end_time:
            return shift_start_on(today - timedelta(days=1), shift.start_time)
        return shift_start_on(today, shift.start_time)

    def for_checkin(self, *, now: datetime, shift_start: datetime, shift: Shift) -> AttendanceStrategy:
        grace_end = shift_start + timedelta(minutes=shift.grace_period_minutes)
        if minutes_between(grace_end, now) == 0:
            return NormalStrategy()
        return LateStrategy()

    def for_checkout(self, *, work_minutes: int, shift: Shift) -> AttendanceStrategy:
        if shift.allow_overtime and work_minutes > shift.scheduled_minutes:
            return OvertimeStrategy()
        return NormalStrategy()
