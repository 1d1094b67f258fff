from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Sequence

from ..activity.model import ActivityLogEntry
from ..breaks.model import BreakRequest
from ..core.constants import DEFAULT_CHECKIN_CUTOFF_MINUTES
from ..core.enums import CheckInStatus
from ..sessions.model import AgentSession, SessionSummary
from ..shifts.model import Shift


@dataclass(frozen=True)
class AttendanceSettings:
    """Policy knobs read from the settings module at startup."""

    checkin_cutoff_minutes: int = DEFAULT_CHECKIN_CUTOFF_MINUTES
    allow_recheckin_after_completed: bool = False

    @classmethod
    def from_settings(cls, settings) -> "AttendanceSettings":
        return cls(
            checkin_cutoff_minutes=int(getattr(settings, "CHECKIN_CUTOFF_MINUTES", DEFAULT_CHECKIN_CUTOFF_MINUTES)),
            allow_recheckin_after_completed=bool(getattr(settings, "ALLOW_RECHECKIN_AFTER_COMPLETED", False)),
        )


@dataclass(frozen=True)
class CheckInResult:
    session: AgentSession
    shift: Shift
    status: CheckInStatus
    late_minutes: int


@dataclass(frozen=True)
class CheckOutResult:
    session: AgentSession
    summary: SessionSummary


@dataclass(frozen=True)
class TodayStats:
    elapsed_minutes: int
    work_minutes: int
    break_minutes: int
    number_of_breaks: int


@dataclass(frozen=True)
class AgentStatus:
    """Read-model for an agent's live attendance state."""

    has_active_session: bool
    session: Optional[AgentSession] = None
    active_break: Optional[BreakRequest] = None
    today: Optional[TodayStats] = None


@dataclass(frozen=True)
class SessionDetails:
    session: AgentSession
    breaks: Sequence[BreakRequest] = field(default_factory=tuple)
    activities: Sequence[ActivityLogEntry] = field(default_factory=tuple)


@dataclass(frozen=True)
class HistorySummary:
    total_sessions: int
    completed_sessions: int
    total_work_minutes: int
    total_break_minutes: int
    total_late_minutes: int
    total_overtime_minutes: int


@dataclass(frozen=True)
class SessionHistory:
    sessions: Sequence[AgentSession]
    summary: HistorySummary
