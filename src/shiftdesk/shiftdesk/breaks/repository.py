from __future__ import annotations

from datetime import date
from typing import Any, Optional, Protocol, Sequence

from ..core.enums import BreakRequestStatus
from .model import BreakRequest


class BreakRequestRepository(Protocol):
    def get_by_id(self, request_id: int) -> Optional[BreakRequest]:
        raise NotImplementedError

    def create(self, request: BreakRequest) -> BreakRequest:
        """Insert (request_id is ignored) and return the stored row."""

        raise NotImplementedError

    def update(self, request_id: int, *, expected_status: BreakRequestStatus, **fields: Any) -> Optional[BreakRequest]:
        """Compare-and-set on status, same contract as SessionRepository.update."""

        raise NotImplementedError

    def find_active_for_session(self, session_id: int) -> Optional[BreakRequest]:
        raise NotImplementedError

    def find_waiting_for_session(self, session_id: int) -> Optional[BreakRequest]:
        """A request of the session that is pending or approved but not started."""

        raise NotImplementedError

    def find_last_ended(self, agent_id: int) -> Optional[BreakRequest]:
        """Most recently ended break of the agent (cooldown reference)."""

        raise NotImplementedError

    def count_today(self, agent_id: int, work_date: date) -> int:
        """Breaks of the agent requested on work_date that used up a slot
        (approved, active or ended)."""

        raise NotImplementedError

    def list_for_session(self, session_id: int) -> Sequence[BreakRequest]:
        raise NotImplementedError

    def list_for_agent_on(self, agent_id: int, work_date: date) -> Sequence[BreakRequest]:
        raise NotImplementedError

    def list_pending(self, *, agent_id: Optional[int] = None, limit: int = 200) -> Sequence[BreakRequest]:
        raise NotImplementedError
