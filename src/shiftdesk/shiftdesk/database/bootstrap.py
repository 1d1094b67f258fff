"""Apply database/schema.sql and database/seed.sql to the configured MySQL server."""
from __future__ import annotations

import logging
import re
from contextlib import closing
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

import mysql.connector

log = logging.getLogger(__name__)

_DB_LEVEL_STATEMENT = re.compile(r"(?im)^\s*(CREATE\s+DATABASE|USE)\b.*?;\s*$")
# Quoted literals are kept whole so a ';' inside them does not end a statement.
_SQL_TOKEN = re.compile(r"'(?:[^'\\]|\\.)*'|\"(?:[^\"\\]|\\.)*\"|;|[^'\";]+|.", re.S)


@dataclass(frozen=True)
class DBTarget:
    host: str
    port: int
    user: str
    password: str
    database: str

    @classmethod
    def from_config(cls, db_config: dict) -> "DBTarget":
        return cls(
            host=str(db_config.get("host", "localhost")),
            port=int(db_config.get("port", 3306)),
            user=str(db_config.get("user", "root")),
            password=str(db_config.get("password", "")),
            database=str(db_config.get("database", "shiftdesk")),
        )

    def connect(self, *, with_database: bool = True):
        kwargs = dict(host=self.host, port=self.port, user=self.user, password=self.password, use_pure=True)
        if with_database:
            kwargs["database"] = self.database
        return mysql.connector.connect(**kwargs)


def _strip_create_db_and_use(sql: str) -> str:
    # schema.sql must run against whatever database DB_CONFIG names.
    return _DB_LEVEL_STATEMENT.sub("", sql)


def _iter_sql_statements(sql: str) -> Iterator[str]:
    body = "\n".join(line for line in sql.splitlines() if not line.lstrip().startswith("--"))
    current: list[str] = []
    for token in _SQL_TOKEN.findall(body):
        if token == ";":
            statement = "".join(current).strip()
            current = []
            if statement:
                yield statement
        else:
            current.append(token)

    statement = "".join(current).strip()
    if statement:
        yield statement


def _apply_sql_file(db_config: dict, path: str | Path) -> int:
    sql = _strip_create_db_and_use(Path(path).read_text(encoding="utf-8"))
    count = 0
    with closing(DBTarget.from_config(db_config).connect()) as conn:
        cur = conn.cursor()
        for statement in _iter_sql_statements(sql):
            cur.execute(statement)
            count += 1
        conn.commit()
    log.debug("applied %s (%d statements)", Path(path).name, count)
    return count


def ensure_database_exists(db_config: dict) -> None:
    target = DBTarget.from_config(db_config)
    with closing(target.connect(with_database=False)) as conn:
        conn.cursor().execute(
            f"CREATE DATABASE IF NOT EXISTS `{target.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    ensure_database_exists(db_config)
    _apply_sql_file(db_config, schema_path)


def apply_seed_sql(db_config: dict, *, seed_path: str | Path) -> None:
    _apply_sql_file(db_config, seed_path)


def list_tables(db_config: dict) -> list[str]:
    with closing(DBTarget.from_config(db_config).connect()) as conn:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return sorted(row[0] for row in cur.fetchall())
