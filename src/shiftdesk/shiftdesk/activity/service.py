from __future__ import annotations

import csv
import io
import json
from collections import Counter, defaultdict
from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Optional, Sequence

from ..agents.repository import AgentRepository
from ..common.datetime_utils import Clock, SystemClock
from ..core.constants import DEFAULT_LOG_LIMIT, DEFAULT_RECENT_ACTIVITY_LIMIT
from ..core.enums import ActivityType
from ..core.exceptions import AgentNotFound, ValidationError
from .model import ActivityLogEntry
from .repository import ActivityLogRepository

CSV_HEADERS = ["Timestamp", "Agent ID", "Type", "Action", "Details"]


@dataclass(frozen=True)
class ActivityStats:
    total: int
    by_type: Dict[str, int]
    timeline: List[dict]


class ActivityLogService:
    """Read side of the activity log: audit views, stats and CSV export."""

    def __init__(self, logs: ActivityLogRepository, agents: AgentRepository, *, clock: Clock | None = None):
        self._logs = logs
        self._agents = agents
        self._clock = clock or SystemClock()

    @staticmethod
    def _check_range(start_date: date, end_date: date) -> None:
        if end_date < start_date:
            raise ValidationError("end_date must not be before start_date")

    def get_agent_logs(self, agent_id: int, *, limit: int = DEFAULT_LOG_LIMIT) -> Sequence[ActivityLogEntry]:
        if not self._agents.get_by_id(agent_id):
            raise AgentNotFound(agent_id=agent_id)
        return self._logs.list_for_agent(agent_id, limit=limit)

    def get_session_logs(self, session_id: int) -> Sequence[ActivityLogEntry]:
        return self._logs.list_for_session(session_id)

    def get_logs_by_date_range(
        self,
        start_date: date,
        end_date: date,
        *,
        agent_id: Optional[int] = None,
        activity_type: Optional[ActivityType] = None,
    ) -> Dict[int, List[ActivityLogEntry]]:
        """Entries in the range grouped by agent id."""
        self._check_range(start_date, end_date)
        grouped: Dict[int, List[ActivityLogEntry]] = defaultdict(list)
        for entry in self._logs.list_by_date_range(
            start_date=start_date,
            end_date=end_date,
            agent_id=agent_id,
            activity_type=activity_type,
        ):
            grouped[entry.agent_id].append(entry)
        return dict(grouped)

    def get_activity_stats(self, agent_id: int, start_date: date, end_date: date) -> ActivityStats:
        self._check_range(start_date, end_date)
        entries = self._logs.list_by_date_range(start_date=start_date, end_date=end_date, agent_id=agent_id)

        by_type = Counter(e.activity_type.value for e in entries)
        per_day = Counter(e.created_at.date() for e in entries)
        timeline = [{"date": d.isoformat(), "count": per_day[d]} for d in sorted(per_day)]
        return ActivityStats(total=len(entries), by_type=dict(by_type), timeline=timeline)

    def get_recent_activity(self, *, limit: int = DEFAULT_RECENT_ACTIVITY_LIMIT) -> Sequence[ActivityLogEntry]:
        today = self._clock.now().date()
        entries = self._logs.list_by_date_range(start_date=today, end_date=today)
        return sorted(entries, key=lambda e: e.created_at, reverse=True)[:limit]

    def export_csv(self, start_date: date, end_date: date, *, agent_id: Optional[int] = None) -> str:
        self._check_range(start_date, end_date)
        entries = self._logs.list_by_date_range(start_date=start_date, end_date=end_date, agent_id=agent_id)

        buf = io.StringIO()
        writer = csv.writer(buf)
        writer.writerow(CSV_HEADERS)
        for e in entries:
            writer.writerow(
                [
                    e.created_at.strftime("%Y-%m-%d %H:%M:%S"),
                    e.agent_id,
                    e.activity_type.value,
                    e.action,
                    json.dumps(dict(e.details), default=str, ensure_ascii=False) if e.details else "",
                ]
            )
        return buf.getvalue()
