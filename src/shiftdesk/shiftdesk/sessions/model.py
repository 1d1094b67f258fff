from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Mapping, Optional

from ..core.enums import CheckInStatus, SessionStatus


@dataclass(frozen=True)
class AgentSession:
    """Domain entity: one agent's attendance record for one calendar day.

    ``sequence`` is 1 unless a second session on the same day was allowed.
    """

    session_id: int
    agent_id: int
    work_date: date
    shift_id: int
    status: SessionStatus
    check_in_time: Optional[datetime] = None
    check_out_time: Optional[datetime] = None
    check_in_status: Optional[CheckInStatus] = None
    late_minutes: int = 0
    total_break_minutes: int = 0
    total_work_minutes: int = 0
    overtime_minutes: int = 0
    overtime_approved: bool = False
    sequence: int = 1
    check_in_ip: Optional[str] = None
    check_out_ip: Optional[str] = None
    check_in_location: Optional[Mapping[str, Any]] = None
    check_out_location: Optional[Mapping[str, Any]] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class SessionSummary:
    total_minutes: int
    break_minutes: int
    work_minutes: int
    overtime_minutes: int = 0
    number_of_breaks: int = 0
