"""
Schema builder: the three-phase introspection pipeline.

Tables are enumerated first, then columns and indexes are collected for the
enumerated tables. Each phase finishes writing to the model before the next
one starts. Any failure ends the build with a single error and no model;
with ``on_error: isolate`` failures in the column and index phases drop the
offending table instead and are listed on ``DatabaseModel.errors``.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Optional

from schema_sync.config import IntrospectionConfig
from schema_sync.errors import BuildCancelled, CatalogQueryError, SchemaSyncError, UnexpectedRowShape
from schema_sync.metadata.columns import ColumnCollector
from schema_sync.metadata.cursor import CatalogCursor
from schema_sync.metadata.indexes import IndexAssembler
from schema_sync.metadata.mysql import MYSQL_QUERIES, CatalogQuerySet
from schema_sync.metadata.tables import TableEnumerator
from schema_sync.models import DatabaseModel, TableError

logger = logging.getLogger(__name__)

PHASE_CONNECT = "connect"
PHASE_TABLES = "tables"
PHASE_COLUMNS = "columns"
PHASE_INDEXES = "indexes"

ProgressCallback = Callable[[str, str, int, int], None]


class SchemaBuilder:
    """
    Owns one DatabaseModel while it is being built.

    Args:
        connection: Open DB-API connection selecting the target schema
        config: Build behaviour (failure mode, column details)
        queries: Catalog query set
        cancel_event: Checked between tables; aborts the build when set
        progress_callback: Called as (phase, table_name, done, total)
            before each table and once more when a phase completes
    """

    def __init__(
        self,
        connection: Any,
        config: Optional[IntrospectionConfig] = None,
        queries: CatalogQuerySet = MYSQL_QUERIES,
        cancel_event: Optional[threading.Event] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ):
        self.config = config or IntrospectionConfig()
        self.queries = queries
        self.cursor = CatalogCursor(connection)
        self.cancel_event = cancel_event
        self.progress_callback = progress_callback

        self.tables = TableEnumerator(self.cursor, queries)
        self.columns = ColumnCollector(
            self.cursor, queries, column_details=self.config.column_details
        )
        self.indexes = IndexAssembler(self.cursor, queries)

        self.model = DatabaseModel()
        self._failed = set()
        self._started = False

    def _check_cancelled(self, phase: str, done: int) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            logger.warning(f"Build cancelled during {phase} after {done} tables")
            raise BuildCancelled(f"Build cancelled during {phase}", phase=phase, tables_done=done)

    def _ticker(self, phase: str):
        def tick(table_name: str, done: int, total: int) -> None:
            if self.progress_callback:
                self.progress_callback(phase, table_name, done, total)
            self._check_cancelled(phase, done)
        return tick

    def _report_done(self, phase: str) -> None:
        if self.progress_callback and self.model.tables:
            total = len(self.model.tables)
            self.progress_callback(phase, self.model.tables[-1].name, total, total)

    def _isolator(self, phase: str):
        def on_error(table_name: str, error: SchemaSyncError) -> bool:
            error.phase = error.phase or phase
            if not self.config.isolate_failures:
                return False
            if not isinstance(error, (CatalogQueryError, UnexpectedRowShape)):
                return False
            logger.warning(f"Isolating {table_name} after {phase} failure: {error.message}")
            self.model.errors.append(TableError(phase=phase, table_name=table_name, message=error.message))
            self._failed.add(table_name)
            return True
        return on_error

    def _drop_failed(self) -> None:
        for name in sorted(self._failed):
            self.model.remove_table(name)
        self._failed.clear()

    def _run_phase(self, phase: str, func, *args, **kwargs) -> DatabaseModel:
        self._check_cancelled(phase, 0)
        logger.info(f"Starting {phase} phase")
        try:
            func(self.model, *args, **kwargs)
        except SchemaSyncError as e:
            e.phase = e.phase or phase
            logger.error(f"{phase} phase failed: {e}")
            raise
        self._report_done(phase)
        self._drop_failed()
        return self.model

    def validate_connection(self) -> None:
        """Fail fast on an absent or unusable connection."""
        try:
            self.cursor.validate()
        except SchemaSyncError as e:
            e.phase = PHASE_CONNECT
            raise

        try:
            self.model.schema_name = self.cursor.fetch_value(
                self.queries.current_database, "database"
            )
        except CatalogQueryError as e:
            e.phase = PHASE_CONNECT
            raise

    def enumerate_tables(self) -> DatabaseModel:
        """Phase 1: discover tables and capture their definitions."""
        return self._run_phase(
            PHASE_TABLES,
            self.tables.enumerate_tables,
            tick=self._ticker(PHASE_TABLES),
        )

    def collect_columns(self) -> DatabaseModel:
        """Phase 2: collect sorted column lists for every table."""
        return self._run_phase(
            PHASE_COLUMNS,
            self.columns.collect_columns,
            tick=self._ticker(PHASE_COLUMNS),
            on_error=self._isolator(PHASE_COLUMNS),
        )

    def assemble_indexes(self) -> DatabaseModel:
        """Phase 3: assemble sorted index lists for every table."""
        return self._run_phase(
            PHASE_INDEXES,
            self.indexes.assemble,
            tick=self._ticker(PHASE_INDEXES),
            on_error=self._isolator(PHASE_INDEXES),
        )

    def build(self) -> DatabaseModel:
        """
        Run every phase and return the sealed model.

        Raises:
            SchemaSyncError: the first failure, tagged with phase and table
        """
        if self._started:
            raise RuntimeError("SchemaBuilder instances build exactly once")
        self._started = True

        self.validate_connection()
        self.enumerate_tables()
        self.collect_columns()
        self.assemble_indexes()
        self.model.seal()

        logger.info(
            f"Built schema {self.model.schema_name or '<unknown>'}: "
            f"{len(self.model.tables)} tables, {len(self.model.errors)} errors"
        )
        return self.model


def build_schema(connection: Any, **kwargs) -> DatabaseModel:
    """Build a DatabaseModel from an open connection."""
    return SchemaBuilder(connection, **kwargs).build()
