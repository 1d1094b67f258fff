from __future__ import annotations

from datetime import datetime, timedelta

from ...common.datetime_utils import minutes_between
from ...core.enums import CheckInStatus
from ...shifts.model import Shift
from .base import AttendanceStrategy, CheckInDecision, CheckOutDecision


class LateStrategy(AttendanceStrategy):
    """Late check-in: minutes are counted from the end of the grace period."""

    def decide_checkin(self, *, now: datetime, shift_start: datetime, shift: Shift) -> CheckInDecision:
        grace_end = shift_start + timedelta(minutes=shift.grace_period_minutes)
        return CheckInDecision(status=CheckInStatus.LATE, late_minutes=minutes_between(grace_end, now))

    def decide_checkout(self, *, work_minutes: int, shift: Shift) -> CheckOutDecision:
        return CheckOutDecision()
