from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Any, Optional

import mysql.connector

# Connection of the transaction currently open in this context, if any.
_active_connection: ContextVar[Optional[Any]] = ContextVar("hr_payroll_active_connection", default=None)


@dataclass
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str


class DatabaseConnection:
    """Singleton-like DB connection factory.

    Note: We create short-lived connections per operation. Inside `transaction()`
    every repository call shares one connection and the outermost block commits.
    """

    _instance: Optional["DatabaseConnection"] = None

    def __init__(self, config: DBConfig):
        self._config = config

    @classmethod
    def get_instance(cls, config: DBConfig) -> "DatabaseConnection":
        if cls._instance is None:
            cls._instance = DatabaseConnection(config)
        return cls._instance

    def connect(self):
        return mysql.connector.connect(
            host=self._config.host,
            port=int(self._config.port),
            user=self._config.user,
            password=self._config.password,
            database=self._config.database,
        )

    def active_connection(self):
        return _active_connection.get()

    @contextmanager
    def transaction(self):
        existing = _active_connection.get()
        if existing is not None:
            yield existing
            return

        conn = self.connect()
        token = _active_connection.set(conn)
        try:
            conn.start_transaction()
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            _active_connection.reset(token)
            conn.close()
