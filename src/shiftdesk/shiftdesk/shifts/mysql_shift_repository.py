from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import BreakType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_time
from .model import BreakPolicy, DurationLimit, Shift
from .repository import ShiftRepository

_SHIFT_COLUMNS = """
    shift_id, name, start_time, end_time, grace_period_minutes, allow_overtime,
    overtime_requires_approval, max_overtime_minutes, break_policy_id, is_active
"""


def _row_to_shift(r: dict) -> Shift:
    return Shift(
        shift_id=int(r["shift_id"]),
        name=r["name"],
        start_time=normalize_mysql_time(r["start_time"]),
        end_time=normalize_mysql_time(r["end_time"]),
        grace_period_minutes=int(r.get("grace_period_minutes") or 0),
        allow_overtime=bool(r.get("allow_overtime")),
        overtime_requires_approval=bool(r.get("overtime_requires_approval", True)),
        max_overtime_minutes=int(r["max_overtime_minutes"]) if r.get("max_overtime_minutes") is not None else None,
        break_policy_id=int(r["break_policy_id"]) if r.get("break_policy_id") is not None else None,
        is_active=bool(r.get("is_active", True)),
    )


def _parse_break_types(value: Optional[str]) -> frozenset:
    if not value:
        return frozenset(BreakType)
    return frozenset(BreakType(v.strip()) for v in value.split(",") if v.strip())


class MySQLShiftRepository(ShiftRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_all(self) -> Sequence[Shift]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_SHIFT_COLUMNS} FROM shifts ORDER BY shift_id")
            return [_row_to_shift(r) for r in fetchall(cur)]

    def get_by_id(self, shift_id: int) -> Optional[Shift]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_SHIFT_COLUMNS} FROM shifts WHERE shift_id=%s", (shift_id,))
            r = fetchone(cur)
            if not r:
                return None
            return _row_to_shift(r)

    def get_break_policy(self, policy_id: int) -> Optional[BreakPolicy]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT policy_id, allowed_break_types, max_breaks_per_day, min_duration, max_duration,
                       cooldown_minutes, requires_approval, auto_approve_limit, preferred_start, preferred_end
                FROM break_policies
                WHERE policy_id=%s
                """,
                (policy_id,),
            )
            r = fetchone(cur)
            if not r:
                return None

            cur.execute(
                """
                SELECT break_type, min_duration, max_duration
                FROM break_policy_type_limits
                WHERE policy_id=%s
                """,
                (policy_id,),
            )
            type_limits = {
                BreakType(row["break_type"]): DurationLimit(int(row["min_duration"]), int(row["max_duration"]))
                for row in fetchall(cur)
            }

            return BreakPolicy(
                policy_id=int(r["policy_id"]),
                allowed_break_types=_parse_break_types(r.get("allowed_break_types")),
                max_breaks_per_day=int(r["max_breaks_per_day"]),
                min_duration=int(r["min_duration"]),
                max_duration=int(r["max_duration"]),
                type_limits=type_limits,
                cooldown_minutes=int(r["cooldown_minutes"]),
                requires_approval=bool(r.get("requires_approval")),
                auto_approve_limit=int(r["auto_approve_limit"]) if r.get("auto_approve_limit") is not None else None,
                preferred_start=normalize_mysql_time(r.get("preferred_start")),
                preferred_end=normalize_mysql_time(r.get("preferred_end")),
            )
