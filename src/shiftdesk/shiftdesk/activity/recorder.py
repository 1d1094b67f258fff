from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from ..common.datetime_utils import Clock
from ..core.enums import ActivityType
from .model import ActivityLogEntry
from .repository import ActivityLogRepository

log = logging.getLogger(__name__)


class ActivityRecorder:
    """Write side of the activity log used by the state machine.

    Called inside the action's transaction, so the entry commits together with
    the transition it describes.
    """

    def __init__(self, logs: ActivityLogRepository, clock: Clock):
        self._logs = logs
        self._clock = clock

    def record(
        self,
        agent_id: int,
        activity_type: ActivityType,
        action: str,
        *,
        session_id: Optional[int] = None,
        details: Optional[Mapping[str, Any]] = None,
        ip_address: Optional[str] = None,
        performed_by: Optional[int] = None,
    ) -> int:
        entry = ActivityLogEntry(
            agent_id=agent_id,
            session_id=session_id,
            activity_type=activity_type,
            action=action,
            details=dict(details or {}),
            ip_address=ip_address,
            performed_by=performed_by,
            created_at=self._clock.now(),
        )
        entry_id = self._logs.append(entry)
        log.debug("activity %s agent=%s session=%s: %s", activity_type.value, agent_id, session_id, action)
        return entry_id
