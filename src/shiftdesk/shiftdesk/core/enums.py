from __future__ import annotations

from enum import Enum


class SessionStatus(str, Enum):
    """Lifecycle of one agent's daily attendance session."""

    NOT_STARTED = "not_started"
    ACTIVE = "active"
    ON_BREAK = "on_break"
    COMPLETED = "completed"
    INCOMPLETE = "incomplete"

    @property
    def is_open(self) -> bool:
        return self in (SessionStatus.ACTIVE, SessionStatus.ON_BREAK)


class CheckInStatus(str, Enum):
    ON_TIME = "on_time"
    LATE = "late"


class BreakType(str, Enum):
    SHORT = "short"
    LUNCH = "lunch"
    EMERGENCY = "emergency"


class BreakRequestStatus(str, Enum):
    """Break request workflow; REJECTED and ENDED are terminal."""

    PENDING = "pending"
    APPROVED = "approved"
    ACTIVE = "active"
    REJECTED = "rejected"
    ENDED = "ended"


# Statuses that consume one of the agent's daily break slots.
COUNTED_BREAK_STATUSES = (
    BreakRequestStatus.APPROVED,
    BreakRequestStatus.ACTIVE,
    BreakRequestStatus.ENDED,
)


class ActivityType(str, Enum):
    CHECK_IN = "check_in"
    CHECK_OUT = "check_out"
    BREAK_REQUESTED = "break_requested"
    BREAK_STARTED = "break_started"
    BREAK_ENDED = "break_ended"
    BREAK_APPROVED = "break_approved"
    BREAK_REJECTED = "break_rejected"
    SESSION_PLANNED = "session_planned"
    SESSION_INCOMPLETE = "session_incomplete"
