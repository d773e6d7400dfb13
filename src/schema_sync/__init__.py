"""
Schema Sync - Relational Schema Introspection

Extracts a normalized, deterministically ordered model of a live database
schema (tables, columns, indexes) from its metadata catalog.

Features:
- Three-phase build: tables, then columns, then indexes
- Composite index reconstruction from row-per-column catalog output
- Reproducible ordering and byte-identical JSON snapshots
- All-or-nothing failure handling, with optional per-table isolation
"""

__version__ = "0.1.0"

from schema_sync.models import (
    Column,
    ColumnDetail,
    DatabaseModel,
    Index,
    IndexType,
    Table,
    TableError,
)

from schema_sync.errors import (
    BuildCancelled,
    CatalogQueryError,
    ConfigError,
    SchemaConnectionError,
    SchemaSyncError,
    UnexpectedRowShape,
)

from schema_sync.builder import SchemaBuilder, build_schema

__all__ = [
    # Core models
    "Column",
    "ColumnDetail",
    "DatabaseModel",
    "Index",
    "IndexType",
    "Table",
    "TableError",
    # Errors
    "BuildCancelled",
    "CatalogQueryError",
    "ConfigError",
    "SchemaConnectionError",
    "SchemaSyncError",
    "UnexpectedRowShape",
    # Builder
    "SchemaBuilder",
    "build_schema",
]
