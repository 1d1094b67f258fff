from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping, Optional

from ..core.enums import ActivityType


@dataclass(frozen=True)
class ActivityLogEntry:
    """Append-only audit record of one attendance transition."""

    agent_id: int
    activity_type: ActivityType
    action: str
    created_at: datetime
    session_id: Optional[int] = None
    details: Mapping[str, Any] = field(default_factory=dict)
    ip_address: Optional[str] = None
    performed_by: Optional[int] = None
    entry_id: Optional[int] = None
