from __future__ import annotations

from datetime import datetime

from ...core.enums import CheckInStatus
from ...shifts.model import Shift
from .base import AttendanceStrategy, CheckInDecision, CheckOutDecision


class NormalStrategy(AttendanceStrategy):
    """On-time check-in (within grace), regular check-out."""

    def decide_checkin(self, *, now: datetime, shift_start: datetime, shift: Shift) -> CheckInDecision:
        return CheckInDecision(status=CheckInStatus.ON_TIME)

    def decide_checkout(self, *, work_minutes: int, shift: Shift) -> CheckOutDecision:
        return CheckOutDecision()
