from __future__ import annotations

from datetime import date
from typing import Any, Optional, Sequence

from ..core.enums import CheckInStatus, SessionStatus
from ..core.exceptions import AlreadyCheckedIn
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_json, in_transaction, is_duplicate_key, to_json
from .model import AgentSession
from .repository import SessionRepository

_COLUMNS = """
    session_id, agent_id, work_date, shift_id, status, check_in_time, check_out_time,
    check_in_status, late_minutes, total_break_minutes, total_work_minutes, overtime_minutes,
    overtime_approved, sequence, check_in_ip, check_out_ip, check_in_location, check_out_location, notes
"""

_UPDATABLE = {
    "status",
    "shift_id",
    "check_in_time",
    "check_out_time",
    "check_in_status",
    "late_minutes",
    "total_break_minutes",
    "total_work_minutes",
    "overtime_minutes",
    "overtime_approved",
    "check_in_ip",
    "check_out_ip",
    "check_in_location",
    "check_out_location",
    "notes",
}

_JSON_FIELDS = {"check_in_location", "check_out_location"}


def _row_to_session(r: dict) -> AgentSession:
    return AgentSession(
        session_id=int(r["session_id"]),
        agent_id=int(r["agent_id"]),
        work_date=r["work_date"],
        shift_id=int(r["shift_id"]),
        status=SessionStatus(r["status"]),
        check_in_time=r.get("check_in_time"),
        check_out_time=r.get("check_out_time"),
        check_in_status=CheckInStatus(r["check_in_status"]) if r.get("check_in_status") else None,
        late_minutes=int(r.get("late_minutes") or 0),
        total_break_minutes=int(r.get("total_break_minutes") or 0),
        total_work_minutes=int(r.get("total_work_minutes") or 0),
        overtime_minutes=int(r.get("overtime_minutes") or 0),
        overtime_approved=bool(r.get("overtime_approved")),
        sequence=int(r.get("sequence") or 1),
        check_in_ip=r.get("check_in_ip"),
        check_out_ip=r.get("check_out_ip"),
        check_in_location=from_json(r.get("check_in_location")),
        check_out_location=from_json(r.get("check_out_location")),
        notes=r.get("notes"),
    )


def _db_value(name: str, value: Any) -> Any:
    if name in _JSON_FIELDS:
        return to_json(value)
    if hasattr(value, "value"):
        return value.value
    return value


class MySQLSessionRepository(SessionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, session_id: int) -> Optional[AgentSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM agent_sessions WHERE session_id=%s", (session_id,))
            r = fetchone(cur)
            return _row_to_session(r) if r else None

    def find_session_for_today(self, agent_id: int, work_date: date) -> Optional[AgentSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM agent_sessions
                WHERE agent_id=%s AND work_date=%s
                ORDER BY sequence DESC
                LIMIT 1
                """,
                (agent_id, work_date),
            )
            r = fetchone(cur)
            return _row_to_session(r) if r else None

    def find_active_session(self, agent_id: int) -> Optional[AgentSession]:
        lock = " FOR UPDATE" if in_transaction(self._conn_factory) else ""
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM agent_sessions
                WHERE agent_id=%s AND status IN (%s, %s)
                ORDER BY work_date DESC, sequence DESC
                LIMIT 1{lock}
                """,
                (agent_id, SessionStatus.ACTIVE.value, SessionStatus.ON_BREAK.value),
            )
            r = fetchone(cur)
            return _row_to_session(r) if r else None

    def create(self, session: AgentSession) -> AgentSession:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO agent_sessions(
                        agent_id, work_date, shift_id, status, check_in_time, check_in_status,
                        late_minutes, sequence, check_in_ip, check_in_location, notes
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        session.agent_id,
                        session.work_date,
                        session.shift_id,
                        session.status.value,
                        session.check_in_time,
                        session.check_in_status.value if session.check_in_status else None,
                        session.late_minutes,
                        session.sequence,
                        session.check_in_ip,
                        to_json(session.check_in_location),
                        session.notes,
                    ),
                )
                session_id = int(cur.lastrowid)
        except Exception as exc:
            if is_duplicate_key(exc):
                raise AlreadyCheckedIn(agent_id=session.agent_id, work_date=str(session.work_date)) from exc
            raise
        return self.get_by_id(session_id)

    def update(self, session_id: int, *, expected_status: SessionStatus, **fields: Any) -> Optional[AgentSession]:
        unknown = set(fields) - _UPDATABLE
        if unknown:
            raise ValueError(f"Unknown session fields: {sorted(unknown)}")

        names = sorted(fields)
        assignments = ", ".join(f"{name}=%s" for name in names)
        params = [_db_value(name, fields[name]) for name in names]
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE agent_sessions SET {assignments} WHERE session_id=%s AND status=%s",
                (*params, session_id, expected_status.value),
            )
            if cur.rowcount == 0:
                return None
        return self.get_by_id(session_id)

    def list_by_date_range(self, *, start_date: date, end_date: date, agent_id: Optional[int] = None) -> Sequence[AgentSession]:
        where = ["work_date BETWEEN %s AND %s"]
        params: list = [start_date, end_date]
        if agent_id is not None:
            where.append("agent_id=%s")
            params.append(agent_id)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM agent_sessions
                WHERE {" AND ".join(where)}
                ORDER BY work_date DESC, agent_id, sequence
                """,
                tuple(params),
            )
            return [_row_to_session(r) for r in fetchall(cur)]

    def list_open_before(self, before_date: date) -> Sequence[AgentSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM agent_sessions
                WHERE work_date < %s AND status IN (%s, %s)
                ORDER BY work_date, agent_id
                """,
                (before_date, SessionStatus.ACTIVE.value, SessionStatus.ON_BREAK.value),
            )
            return [_row_to_session(r) for r in fetchall(cur)]
