from __future__ import annotations

from datetime import datetime
from typing import Tuple

from ..common.datetime_utils import minutes_between, within_window
from ..core.enums import BreakType
from ..core.exceptions import (
    BreakCooldownActive,
    BreakTooLong,
    BreakTooShort,
    BreakTypeNotAllowed,
    MaxBreaksReached,
)
from ..shifts.model import BreakPolicy
from .repository import BreakRequestRepository


class BreakPolicyValidator:
    """Checks a break request against the shift's BreakPolicy.

    Hard rules raise in this order: type, duration, daily count, cooldown.
    Soft rules come back as warnings stored on the request.
    """

    def __init__(self, breaks: BreakRequestRepository):
        self._breaks = breaks

    def validate(
        self,
        *,
        agent_id: int,
        break_type: BreakType,
        requested_duration: int,
        policy: BreakPolicy,
        now: datetime,
    ) -> Tuple[str, ...]:
        if break_type not in policy.allowed_break_types:
            raise BreakTypeNotAllowed(
                break_type=break_type.value,
                allowed_types=sorted(t.value for t in policy.allowed_break_types),
            )

        limits = policy.limits_for(break_type)
        if requested_duration < limits.min_minutes:
            raise BreakTooShort(min_duration=limits.min_minutes, requested=requested_duration)
        if requested_duration > limits.max_minutes:
            raise BreakTooLong(max_duration=limits.max_minutes, requested=requested_duration)

        taken = self._breaks.count_today(agent_id, now.date())
        if taken >= policy.max_breaks_per_day:
            raise MaxBreaksReached(max_breaks=policy.max_breaks_per_day)

        last = self._breaks.find_last_ended(agent_id)
        if last and last.ended_at:
            since = minutes_between(last.ended_at, now)
            if since < policy.cooldown_minutes:
                raise BreakCooldownActive(
                    cooldown_minutes=policy.cooldown_minutes,
                    remaining_minutes=policy.cooldown_minutes - since,
                )

        warnings = []
        if policy.preferred_start and policy.preferred_end:
            if not within_window(now.time(), policy.preferred_start, policy.preferred_end):
                warnings.append(
                    f"outside preferred window {policy.preferred_start:%H:%M}-{policy.preferred_end:%H:%M}"
                )
        return tuple(warnings)
