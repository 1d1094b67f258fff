from __future__ import annotations

from datetime import date
from typing import Any, Optional, Sequence

from ..common.datetime_utils import day_bounds
from ..core.enums import COUNTED_BREAK_STATUSES, BreakRequestStatus, BreakType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import BreakRequest
from .repository import BreakRequestRepository

_COLUMNS = """
    request_id, session_id, agent_id, policy_id, break_type, requested_duration, status,
    requested_at, reason, auto_approved, actual_duration, started_at, ended_at,
    decided_at, decided_by, decision_note, warnings
"""

_UPDATABLE = {
    "status",
    "actual_duration",
    "started_at",
    "ended_at",
    "decided_at",
    "decided_by",
    "decision_note",
}


def _row_to_request(r: dict) -> BreakRequest:
    warnings = r.get("warnings") or ""
    return BreakRequest(
        request_id=int(r["request_id"]),
        session_id=int(r["session_id"]),
        agent_id=int(r["agent_id"]),
        policy_id=int(r["policy_id"]) if r.get("policy_id") is not None else None,
        break_type=BreakType(r["break_type"]),
        requested_duration=int(r["requested_duration"]),
        status=BreakRequestStatus(r["status"]),
        requested_at=r["requested_at"],
        reason=r.get("reason"),
        auto_approved=bool(r.get("auto_approved")),
        actual_duration=int(r["actual_duration"]) if r.get("actual_duration") is not None else None,
        started_at=r.get("started_at"),
        ended_at=r.get("ended_at"),
        decided_at=r.get("decided_at"),
        decided_by=int(r["decided_by"]) if r.get("decided_by") is not None else None,
        decision_note=r.get("decision_note"),
        warnings=tuple(w for w in warnings.split("\n") if w),
    )


class MySQLBreakRequestRepository(BreakRequestRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _select_one(self, where: str, params: tuple) -> Optional[BreakRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM break_requests WHERE {where} LIMIT 1", params)
            r = fetchone(cur)
            return _row_to_request(r) if r else None

    def _select_many(self, where: str, params: tuple, *, order: str = "requested_at", limit: Optional[int] = None) -> Sequence[BreakRequest]:
        sql = f"SELECT {_COLUMNS} FROM break_requests WHERE {where} ORDER BY {order}"
        if limit is not None:
            sql += " LIMIT %s"
            params = (*params, int(limit))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, params)
            return [_row_to_request(r) for r in fetchall(cur)]

    def get_by_id(self, request_id: int) -> Optional[BreakRequest]:
        return self._select_one("request_id=%s", (request_id,))

    def create(self, request: BreakRequest) -> BreakRequest:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO break_requests(
                    session_id, agent_id, policy_id, break_type, requested_duration, status,
                    requested_at, reason, auto_approved, started_at, warnings
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    request.session_id,
                    request.agent_id,
                    request.policy_id,
                    request.break_type.value,
                    request.requested_duration,
                    request.status.value,
                    request.requested_at,
                    request.reason,
                    1 if request.auto_approved else 0,
                    request.started_at,
                    "\n".join(request.warnings) or None,
                ),
            )
            request_id = int(cur.lastrowid)
        return self.get_by_id(request_id)

    def update(self, request_id: int, *, expected_status: BreakRequestStatus, **fields: Any) -> Optional[BreakRequest]:
        unknown = set(fields) - _UPDATABLE
        if unknown:
            raise ValueError(f"Unknown break request fields: {sorted(unknown)}")

        names = sorted(fields)
        assignments = ", ".join(f"{name}=%s" for name in names)
        params = [fields[n].value if hasattr(fields[n], "value") else fields[n] for n in names]
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE break_requests SET {assignments} WHERE request_id=%s AND status=%s",
                (*params, request_id, expected_status.value),
            )
            if cur.rowcount == 0:
                return None
        return self.get_by_id(request_id)

    def find_active_for_session(self, session_id: int) -> Optional[BreakRequest]:
        return self._select_one("session_id=%s AND status=%s", (session_id, BreakRequestStatus.ACTIVE.value))

    def find_waiting_for_session(self, session_id: int) -> Optional[BreakRequest]:
        return self._select_one(
            "session_id=%s AND status IN (%s, %s)",
            (session_id, BreakRequestStatus.PENDING.value, BreakRequestStatus.APPROVED.value),
        )

    def find_last_ended(self, agent_id: int) -> Optional[BreakRequest]:
        rows = self._select_many(
            "agent_id=%s AND status=%s",
            (agent_id, BreakRequestStatus.ENDED.value),
            order="ended_at DESC",
            limit=1,
        )
        return rows[0] if rows else None

    def count_today(self, agent_id: int, work_date: date) -> int:
        placeholders = ", ".join(["%s"] * len(COUNTED_BREAK_STATUSES))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT COUNT(*) AS n
                FROM break_requests
                WHERE agent_id=%s AND requested_at >= %s AND requested_at < %s
                  AND status IN ({placeholders})
                """,
                (agent_id, *day_bounds(work_date), *(s.value for s in COUNTED_BREAK_STATUSES)),
            )
            r = fetchone(cur)
            return int(r["n"]) if r else 0

    def list_for_session(self, session_id: int) -> Sequence[BreakRequest]:
        return self._select_many("session_id=%s", (session_id,))

    def list_for_agent_on(self, agent_id: int, work_date: date) -> Sequence[BreakRequest]:
        return self._select_many(
            "agent_id=%s AND requested_at >= %s AND requested_at < %s",
            (agent_id, *day_bounds(work_date)),
        )

    def list_pending(self, *, agent_id: Optional[int] = None, limit: int = 200) -> Sequence[BreakRequest]:
        if agent_id is None:
            return self._select_many("status=%s", (BreakRequestStatus.PENDING.value,), limit=limit)
        return self._select_many(
            "status=%s AND agent_id=%s",
            (BreakRequestStatus.PENDING.value, agent_id),
            limit=limit,
        )
