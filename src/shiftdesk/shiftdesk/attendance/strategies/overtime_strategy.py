from __future__ import annotations

from datetime import datetime

from ...core.enums import CheckInStatus
from ...shifts.model import Shift
from .base import AttendanceStrategy, CheckInDecision, CheckOutDecision


class OvertimeStrategy(AttendanceStrategy):
    """Check-out after working longer than the scheduled shift."""

    def decide_checkin(self, *, now: datetime, shift_start: datetime, shift: Shift) -> CheckInDecision:
        return CheckInDecision(status=CheckInStatus.ON_TIME)

    def decide_checkout(self, *, work_minutes: int, shift: Shift) -> CheckOutDecision:
        overtime = max(0, work_minutes - shift.scheduled_minutes)
        if shift.max_overtime_minutes is not None:
            overtime = min(overtime, shift.max_overtime_minutes)
        return CheckOutDecision(
            overtime_minutes=overtime,
            overtime_approved=overtime > 0 and not shift.overtime_requires_approval,
        )
