"""
MySQL connection helper using PyMySQL.

The builder itself accepts any DB-API connection; this helper only exists
so the CLI can open one from a config.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from schema_sync.config import ConnectionConfig
from schema_sync.errors import SchemaConnectionError

logger = logging.getLogger(__name__)


class MySQLConnection:
    """Context manager that opens and closes a PyMySQL connection."""

    def __init__(self, config: ConnectionConfig):
        self.config = config
        self._conn: Optional[Any] = None

    @classmethod
    def from_string(cls, conn: str) -> MySQLConnection:
        return cls(ConnectionConfig.from_string(conn))

    def connect(self) -> Any:
        """Establish database connection."""
        import pymysql

        try:
            self._conn = pymysql.connect(
                host=self.config.host,
                port=self.config.port,
                user=self.config.user,
                password=self.config.password,
                database=self.config.database,
                charset=self.config.charset,
                connect_timeout=self.config.connect_timeout,
            )
        except pymysql.MySQLError as e:
            raise SchemaConnectionError(
                f"MySQL connection to {self.config.host}:{self.config.port} failed: {e}"
            ) from e

        logger.info(
            f"Connected to MySQL {self.config.host}:{self.config.port}/"
            f"{self.config.database} as {self.config.user}"
        )
        return self._conn

    def disconnect(self) -> None:
        """Close database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None

    @property
    def connection(self) -> Optional[Any]:
        return self._conn

    def __enter__(self):
        return self.connect()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.disconnect()
