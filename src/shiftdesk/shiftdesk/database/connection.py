from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Optional

import mysql.connector
from mysql.connector.constants import ClientFlag


@dataclass
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str


class DatabaseConnection:
    """DB connection factory owned by the process bootstrap.

    Note: Outside a transaction we create short-lived connections per operation.
    Inside ``transaction()`` (see mysql_base) the open connection is parked on a
    thread-local so every repository call joins the same unit of work.
    """

    def __init__(self, config: DBConfig):
        self._config = config
        self._local = threading.local()

    @classmethod
    def from_dict(cls, db_config: dict) -> "DatabaseConnection":
        return cls(
            DBConfig(
                host=str(db_config["host"]),
                port=int(db_config.get("port", 3306)),
                user=str(db_config["user"]),
                password=str(db_config["password"]),
                database=str(db_config["database"]),
            )
        )

    def connect(self):
        return mysql.connector.connect(
            host=self._config.host,
            port=int(self._config.port),
            user=self._config.user,
            password=self._config.password,
            database=self._config.database,
            autocommit=False,
            # rowcount = matched rows, so compare-and-set updates are reliable.
            client_flags=[ClientFlag.FOUND_ROWS],
        )

    def current(self) -> Optional[Any]:
        return getattr(self._local, "conn", None)

    def bind(self, conn: Optional[Any]) -> None:
        self._local.conn = conn
