from __future__ import annotations

from datetime import time, timedelta
from pathlib import Path

from src.shiftdesk.shiftdesk.database.bootstrap import _iter_sql_statements, _strip_create_db_and_use
from src.shiftdesk.shiftdesk.database.mysql_base import from_json, normalize_mysql_time, to_json

DATABASE_DIR = Path(__file__).resolve().parents[1] / "database"


def test_sql_splitter_ignores_comments_and_quoted_semicolons():
    sql = """
    -- header; with semicolon
    CREATE DATABASE demo;
    USE demo;
    INSERT INTO t VALUES ('a;b');
    INSERT INTO t VALUES ("c")
    """

    statements = list(_iter_sql_statements(_strip_create_db_and_use(sql)))

    assert statements == ["INSERT INTO t VALUES ('a;b')", 'INSERT INTO t VALUES ("c")']


def test_schema_declares_every_table():
    statements = list(_iter_sql_statements((DATABASE_DIR / "schema.sql").read_text(encoding="utf-8")))

    created = [s.split()[5] for s in statements if s.startswith("CREATE TABLE")]
    assert created == [
        "break_policies",
        "break_policy_type_limits",
        "shifts",
        "agents",
        "agent_sessions",
        "break_requests",
        "activity_logs",
    ]


def test_mysql_value_helpers():
    assert normalize_mysql_time(timedelta(hours=9, minutes=30)) == time(9, 30)
    assert normalize_mysql_time("22:00:00") == time(22, 0)
    assert normalize_mysql_time(None) is None
    assert from_json(to_json({"lat": 1.5})) == {"lat": 1.5}
    assert to_json(None) is None
