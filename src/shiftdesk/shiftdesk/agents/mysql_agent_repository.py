from __future__ import annotations

from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import Agent
from .repository import AgentRepository


def _row_to_agent(row: dict) -> Agent:
    return Agent(
        agent_id=int(row["agent_id"]),
        full_name=row["full_name"],
        email=row.get("email"),
        shift_id=int(row["shift_id"]) if row.get("shift_id") is not None else None,
        is_active=bool(row.get("is_active", True)),
    )


class MySQLAgentRepository(AgentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, agent_id: int) -> Optional[Agent]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT agent_id, full_name, email, shift_id, is_active
                FROM agents
                WHERE agent_id=%s
                """,
                (agent_id,),
            )
            row = fetchone(cur)
            if not row:
                return None
            return _row_to_agent(row)
