"""
Exception hierarchy for schema introspection.

Every error carries the build phase and table it was raised for, so a failed
run can report exactly where the catalog let it down.
"""

from __future__ import annotations

from typing import Optional


class SchemaSyncError(Exception):
    """Base class for all schema_sync errors."""

    def __init__(
        self,
        message: str,
        phase: Optional[str] = None,
        table_name: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.phase = phase
        self.table_name = table_name

    def __str__(self) -> str:
        location = []
        if self.phase:
            location.append(f"phase={self.phase}")
        if self.table_name:
            location.append(f"table={self.table_name}")
        if location:
            return f"{self.message} ({', '.join(location)})"
        return self.message


class SchemaConnectionError(SchemaSyncError, ConnectionError):
    """Connection is missing or unusable at the start of a build."""


class CatalogQueryError(SchemaSyncError):
    """A metadata query failed to execute or fetch."""

    def __init__(
        self,
        message: str,
        query_name: Optional[str] = None,
        phase: Optional[str] = None,
        table_name: Optional[str] = None,
    ):
        super().__init__(message, phase=phase, table_name=table_name)
        self.query_name = query_name


class UnexpectedRowShape(SchemaSyncError):
    """A catalog row is missing a value that the model requires."""


class BuildCancelled(SchemaSyncError):
    """The cancellation signal was observed between tables."""

    def __init__(
        self,
        message: str,
        phase: Optional[str] = None,
        tables_done: int = 0,
    ):
        super().__init__(message, phase=phase)
        self.tables_done = tables_done


class ConfigError(SchemaSyncError):
    """Invalid configuration file or connection string."""
