from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple

from ..core.enums import BreakRequestStatus, BreakType


@dataclass(frozen=True)
class BreakRequest:
    """Domain entity: a break asked for during a session."""

    request_id: int
    session_id: int
    agent_id: int
    break_type: BreakType
    requested_duration: int
    status: BreakRequestStatus
    requested_at: datetime
    policy_id: Optional[int] = None
    reason: Optional[str] = None
    auto_approved: bool = False
    actual_duration: Optional[int] = None
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    decided_at: Optional[datetime] = None
    decided_by: Optional[int] = None
    decision_note: Optional[str] = None
    warnings: Tuple[str, ...] = ()
