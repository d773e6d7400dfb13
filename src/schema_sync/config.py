"""
Configuration objects for introspection runs.

Settings come from a YAML file of the form::

    connection:
      host: localhost
      port: 3306
      user: reader
      password: secret
      database: shop
    introspection:
      on_error: abort        # or "isolate"
      column_details: false
    output: snapshots/shop.json

Command-line options override file values.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from schema_sync.errors import ConfigError

logger = logging.getLogger(__name__)

ON_ERROR_MODES = ("abort", "isolate")


def _require_mapping(data: Any, section: str) -> None:
    if not isinstance(data, dict):
        raise ConfigError(f"'{section}' must be a mapping, got {type(data).__name__}")


def _int_value(data: Dict[str, Any], key: str, default: int) -> int:
    value = data.get(key, default)
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid {key}: {value!r}") from e


@dataclass
class ConnectionConfig:
    """MySQL connection settings."""
    host: str = "localhost"
    port: int = 3306
    user: str = ""
    password: str = ""
    database: str = ""
    charset: str = "utf8mb4"
    connect_timeout: int = 10

    @classmethod
    def from_string(cls, conn: str) -> ConnectionConfig:
        """
        Parse a connection string.

        Args:
            conn: Connection string (user:pwd@host:port/database)

        Returns:
            ConnectionConfig

        Raises:
            ConfigError: if the string has no database part
        """
        user_pwd, _, host_db = conn.rpartition("@")
        if "/" not in host_db:
            raise ConfigError(f"Connection string must end with /database: {conn!r}")

        host_port, database = host_db.split("/", 1)
        user, _, password = user_pwd.partition(":")
        host, _, port = host_port.partition(":")

        try:
            port_num = int(port) if port else 3306
        except ValueError as e:
            raise ConfigError(f"Invalid port in connection string: {port!r}") from e

        if not database:
            raise ConfigError(f"Connection string has an empty database: {conn!r}")

        return cls(
            host=host or "localhost",
            port=port_num,
            user=user,
            password=password,
            database=database,
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ConnectionConfig:
        """
        Create from dictionary.

        Raises:
            ConfigError: if the section is not a mapping or a number is invalid
        """
        _require_mapping(data, "connection")
        return cls(
            host=data.get("host", "localhost"),
            port=_int_value(data, "port", 3306),
            user=data.get("user", ""),
            password=data.get("password", ""),
            database=data.get("database", ""),
            charset=data.get("charset", "utf8mb4"),
            connect_timeout=_int_value(data, "connect_timeout", 10),
        )


@dataclass
class IntrospectionConfig:
    """Behaviour of a build."""
    on_error: str = "abort"
    column_details: bool = False

    def __post_init__(self):
        if self.on_error not in ON_ERROR_MODES:
            raise ConfigError(
                f"on_error must be one of {', '.join(ON_ERROR_MODES)}, got {self.on_error!r}"
            )

    @property
    def isolate_failures(self) -> bool:
        return self.on_error == "isolate"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> IntrospectionConfig:
        """Create from dictionary."""
        _require_mapping(data, "introspection")
        return cls(
            on_error=data.get("on_error", "abort"),
            column_details=bool(data.get("column_details", False)),
        )


@dataclass
class Settings:
    """Top-level settings loaded from a config file."""
    connection: Optional[ConnectionConfig] = None
    introspection: IntrospectionConfig = field(default_factory=IntrospectionConfig)
    output: Optional[Path] = None

    def __post_init__(self):
        if isinstance(self.output, str):
            self.output = Path(self.output)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Settings:
        """Create from dictionary."""
        conn = data.get("connection")
        return cls(
            connection=ConnectionConfig.from_dict(conn) if conn else None,
            introspection=IntrospectionConfig.from_dict(data.get("introspection") or {}),
            output=data.get("output"),
        )

    @classmethod
    def load(cls, path: Path) -> Settings:
        """Load settings from a YAML file."""
        path = Path(path)
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")

        with open(path, "r") as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")

        logger.info(f"Loaded settings from {path}")
        return cls.from_dict(data)
