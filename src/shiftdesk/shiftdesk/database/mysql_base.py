from __future__ import annotations

import json
from contextlib import contextmanager
from datetime import time, timedelta
from typing import Any, Dict, Iterator, List, Optional

import mysql.connector
from mysql.connector import errorcode

from .connection import DatabaseConnection


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """Yield (conn, cursor).

    Joins the open transaction when there is one (commit/rollback is left to
    ``transaction``); otherwise runs on a short-lived connection.
    """

    shared = conn_factory.current()
    if shared is not None:
        cur = shared.cursor(dictionary=dictionary)
        try:
            yield shared, cur
        finally:
            cur.close()
        return

    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


@contextmanager
def transaction(conn_factory: DatabaseConnection) -> Iterator[Any]:
    """All-or-nothing unit of work across repositories sharing conn_factory."""

    if conn_factory.current() is not None:
        # Nested call: the outermost transaction owns commit/rollback.
        yield conn_factory.current()
        return

    conn = conn_factory.connect()
    conn_factory.bind(conn)
    try:
        conn.start_transaction()
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn_factory.bind(None)
        conn.close()


class MySQLUnitOfWork:
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def transaction(self):
        return transaction(self._conn_factory)


def in_transaction(conn_factory: DatabaseConnection) -> bool:
    return conn_factory.current() is not None


def is_duplicate_key(exc: Exception) -> bool:
    return isinstance(exc, mysql.connector.IntegrityError) and getattr(exc, "errno", None) == errorcode.ER_DUP_ENTRY


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def to_json(value: Any) -> Optional[str]:
    if value is None:
        return None
    return json.dumps(value, default=str, ensure_ascii=False)


def from_json(value: Any) -> Any:
    if value is None or value == "":
        return None
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    if isinstance(value, str):
        return json.loads(value)
    return value


def normalize_mysql_time(value: Any) -> Optional[time]:
    """TIME columns arrive as time, timedelta (C extension) or "HH:MM[:SS]" text."""

    if value is None or isinstance(value, time):
        return value
    if isinstance(value, timedelta):
        seconds = int(value.total_seconds()) % 86400
    elif isinstance(value, str):
        parts = [int(p) for p in value.strip().split(":") if p]
        if len(parts) not in (2, 3):
            raise ValueError(f"Invalid time string: {value!r}")
        seconds = parts[0] * 3600 + parts[1] * 60 + (parts[2] if len(parts) == 3 else 0)
    else:
        raise TypeError(f"Unsupported MySQL TIME value type: {type(value)!r}")
    return time(seconds // 3600 % 24, seconds % 3600 // 60, seconds % 60)
