from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import ActivityType
from .model import ActivityLogEntry


class ActivityLogRepository(Protocol):
    def append(self, entry: ActivityLogEntry) -> int:
        raise NotImplementedError

    def list_for_agent(self, agent_id: int, *, limit: int) -> Sequence[ActivityLogEntry]:
        """Newest first."""

        raise NotImplementedError

    def list_for_session(self, session_id: int) -> Sequence[ActivityLogEntry]:
        """Oldest first."""

        raise NotImplementedError

    def list_by_date_range(
        self,
        *,
        start_date: date,
        end_date: date,
        agent_id: Optional[int] = None,
        activity_type: Optional[ActivityType] = None,
    ) -> Sequence[ActivityLogEntry]:
        """Entries created on start_date..end_date inclusive, oldest first."""

        raise NotImplementedError
