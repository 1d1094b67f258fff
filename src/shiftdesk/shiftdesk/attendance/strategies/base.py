from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime

from ...core.enums import CheckInStatus
from ...shifts.model import Shift


@dataclass(frozen=True)
class CheckInDecision:
    status: CheckInStatus
    late_minutes: int = 0


@dataclass(frozen=True)
class CheckOutDecision:
    overtime_minutes: int = 0
    overtime_approved: bool = False


class AttendanceStrategy(ABC):
    """Strategy Pattern: encapsulate how we judge a check-in / check-out."""

    @abstractmethod
    def decide_checkin(self, *, now: datetime, shift_start: datetime, shift: Shift) -> CheckInDecision:
        raise NotImplementedError

    @abstractmethod
    def decide_checkout(self, *, work_minutes: int, shift: Shift) -> CheckOutDecision:
        raise NotImplementedError
