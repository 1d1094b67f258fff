from __future__ import annotations

from typing import Optional, Protocol

from .model import Agent


class AgentRepository(Protocol):
    """Repository interface for Agent.

    Note (DIP): services depend on this interface, not on a concrete DB.
    """

    def get_by_id(self, agent_id: int) -> Optional[Agent]:
        raise NotImplementedError
