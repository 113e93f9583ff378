from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

import mysql.connector

DEFAULT_PORT = 3306
DEFAULT_CONNECT_TIMEOUT_SECONDS = 10


@dataclass(frozen=True)
class DBConfig:
    host: str
    user: str
    password: str
    database: str
    port: int = DEFAULT_PORT
    connect_timeout: int = DEFAULT_CONNECT_TIMEOUT_SECONDS

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "DBConfig":
        """Settings-module ``DB_CONFIG`` dict to a typed config."""

        return cls(
            host=str(data["host"]),
            user=str(data["user"]),
            password=str(data.get("password") or ""),
            database=str(data["database"]),
            port=int(data.get("port") or DEFAULT_PORT),
            connect_timeout=int(data.get("connect_timeout") or DEFAULT_CONNECT_TIMEOUT_SECONDS),
        )


class DatabaseConnection:
    """Connection factory for the repositories.

    Each unit of work opens its own connection with autocommit off, so a
    ``db_cursor`` block commits or rolls back as a whole.
    """

    def __init__(self, config: DBConfig):
        self._config = config

    def connect(self):
        return mysql.connector.connect(
            host=self._config.host,
            port=self._config.port,
            user=self._config.user,
            password=self._config.password,
            database=self._config.database,
            connection_timeout=self._config.connect_timeout,
            autocommit=False,
        )
