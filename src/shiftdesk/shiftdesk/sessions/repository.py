from __future__ import annotations

from datetime import date
from typing import Any, Optional, Protocol, Sequence

from ..core.enums import SessionStatus
from .model import AgentSession


class SessionRepository(Protocol):
    """Persistence for AgentSession rows.

    Uniqueness of (agent_id, work_date, sequence) is enforced by the store;
    ``create`` raises ``AlreadyCheckedIn`` when it is violated.
    """

    def get_by_id(self, session_id: int) -> Optional[AgentSession]:
        raise NotImplementedError

    def find_session_for_today(self, agent_id: int, work_date: date) -> Optional[AgentSession]:
        """Latest session (highest sequence) of the agent on work_date."""

        raise NotImplementedError

    def find_active_session(self, agent_id: int) -> Optional[AgentSession]:
        """The agent's session in ACTIVE or ON_BREAK, whatever its date.

        Inside a transaction the row is locked until commit.
        """

        raise NotImplementedError

    def create(self, session: AgentSession) -> AgentSession:
        """Insert (session_id is ignored) and return the stored row."""

        raise NotImplementedError

    def update(self, session_id: int, *, expected_status: SessionStatus, **fields: Any) -> Optional[AgentSession]:
        """Compare-and-set: apply fields only while status == expected_status.

        Returns the updated row, or None when the status had already moved on.
        """

        raise NotImplementedError

    def list_by_date_range(self, *, start_date: date, end_date: date, agent_id: Optional[int] = None) -> Sequence[AgentSession]:
        raise NotImplementedError

    def list_open_before(self, before_date: date) -> Sequence[AgentSession]:
        """ACTIVE/ON_BREAK sessions dated before before_date (reconciliation input)."""

        raise NotImplementedError
