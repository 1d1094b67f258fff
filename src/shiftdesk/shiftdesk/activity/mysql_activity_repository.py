from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..common.datetime_utils import day_bounds
from ..core.enums import ActivityType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, from_json, to_json
from .model import ActivityLogEntry
from .repository import ActivityLogRepository

_COLUMNS = "entry_id, agent_id, session_id, activity_type, action, details, ip_address, performed_by, created_at"


def _row_to_entry(r: dict) -> ActivityLogEntry:
    return ActivityLogEntry(
        entry_id=int(r["entry_id"]),
        agent_id=int(r["agent_id"]),
        session_id=int(r["session_id"]) if r.get("session_id") is not None else None,
        activity_type=ActivityType(r["activity_type"]),
        action=r["action"],
        details=from_json(r.get("details")) or {},
        ip_address=r.get("ip_address"),
        performed_by=int(r["performed_by"]) if r.get("performed_by") is not None else None,
        created_at=r["created_at"],
    )


class MySQLActivityLogRepository(ActivityLogRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def append(self, entry: ActivityLogEntry) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO activity_logs(agent_id, session_id, activity_type, action, details, ip_address, performed_by, created_at)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    entry.agent_id,
                    entry.session_id,
                    entry.activity_type.value,
                    entry.action,
                    to_json(dict(entry.details)),
                    entry.ip_address,
                    entry.performed_by,
                    entry.created_at,
                ),
            )
            return int(cur.lastrowid)

    def list_for_agent(self, agent_id: int, *, limit: int) -> Sequence[ActivityLogEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM activity_logs
                WHERE agent_id=%s
                ORDER BY created_at DESC, entry_id DESC
                LIMIT %s
                """,
                (agent_id, int(limit)),
            )
            return [_row_to_entry(r) for r in fetchall(cur)]

    def list_for_session(self, session_id: int) -> Sequence[ActivityLogEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM activity_logs WHERE session_id=%s ORDER BY created_at, entry_id",
                (session_id,),
            )
            return [_row_to_entry(r) for r in fetchall(cur)]

    def list_by_date_range(
        self,
        *,
        start_date: date,
        end_date: date,
        agent_id: Optional[int] = None,
        activity_type: Optional[ActivityType] = None,
    ) -> Sequence[ActivityLogEntry]:
        start, _ = day_bounds(start_date)
        _, end = day_bounds(end_date)
        where = ["created_at >= %s", "created_at < %s"]
        params: list = [start, end]
        if agent_id is not None:
            where.append("agent_id=%s")
            params.append(agent_id)
        if activity_type is not None:
            where.append("activity_type=%s")
            params.append(activity_type.value)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM activity_logs
                WHERE {" AND ".join(where)}
                ORDER BY created_at, entry_id
                """,
                tuple(params),
            )
            return [_row_to_entry(r) for r in fetchall(cur)]
