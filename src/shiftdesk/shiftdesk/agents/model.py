from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Agent:
    """Domain entity: a staff member whose attendance is tracked.

    Note: Plain data object (no DB access code).
    """

    agent_id: int
    full_name: str
    email: Optional[str]
    shift_id: Optional[int]
    is_active: bool = True
