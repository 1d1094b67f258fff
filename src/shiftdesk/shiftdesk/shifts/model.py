from __future__ import annotations

from dataclasses import dataclass, field
from datetime import time
from typing import FrozenSet, Mapping, Optional

from ..common.datetime_utils import shift_duration_minutes
from ..core.constants import (
    DEFAULT_COOLDOWN_MINUTES,
    DEFAULT_MAX_BREAK_MINUTES,
    DEFAULT_MAX_BREAKS_PER_DAY,
    DEFAULT_MIN_BREAK_MINUTES,
)
from ..core.enums import BreakType


@dataclass(frozen=True)
class Shift:
    """Domain entity: a work shift.

    A session keeps the shift_id it checked in with; edits to a shift only
    apply to sessions started afterwards.
    """

    shift_id: int
    name: str
    start_time: time
    end_time: time
    grace_period_minutes: int = 0
    allow_overtime: bool = False
    overtime_requires_approval: bool = True
    max_overtime_minutes: Optional[int] = None
    break_policy_id: Optional[int] = None
    is_active: bool = True

    @property
    def scheduled_minutes(self) -> int:
        return shift_duration_minutes(self.start_time, self.end_time)

    @property
    def crosses_midnight(self) -> bool:
        return self.end_time <= self.start_time


@dataclass(frozen=True)
class DurationLimit:
    min_minutes: int
    max_minutes: int


@dataclass(frozen=True)
class BreakPolicy:
    """Break rules attached to one or more shifts."""

    policy_id: int
    allowed_break_types: FrozenSet[BreakType] = frozenset(BreakType)
    max_breaks_per_day: int = DEFAULT_MAX_BREAKS_PER_DAY
    min_duration: int = DEFAULT_MIN_BREAK_MINUTES
    max_duration: int = DEFAULT_MAX_BREAK_MINUTES
    type_limits: Mapping[BreakType, DurationLimit] = field(default_factory=dict)
    cooldown_minutes: int = DEFAULT_COOLDOWN_MINUTES
    requires_approval: bool = False
    auto_approve_limit: Optional[int] = None
    preferred_start: Optional[time] = None
    preferred_end: Optional[time] = None

    def limits_for(self, break_type: BreakType) -> DurationLimit:
        return self.type_limits.get(break_type) or DurationLimit(self.min_duration, self.max_duration)

    def needs_approval(self, requested_duration: int) -> bool:
        if not self.requires_approval:
            return False
        if self.auto_approve_limit is not None and requested_duration <= self.auto_approve_limit:
            return False
        return True
