"""
Table enumeration.

Lists the base tables of the active schema in a stable order and captures
each table's create statement.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from schema_sync.metadata.cursor import CatalogCursor
from schema_sync.metadata.mysql import MYSQL_QUERIES, CatalogQuerySet
from schema_sync.models import DatabaseModel, Table

logger = logging.getLogger(__name__)


class TableEnumerator:
    """Discovers tables and seeds the model with their definitions."""

    def __init__(self, cursor: CatalogCursor, queries: CatalogQuerySet = MYSQL_QUERIES):
        self.cursor = cursor
        self.queries = queries

    def list_tables(self) -> List[str]:
        """Return all table names, sorted ascending by code point."""
        rows = self.cursor.fetch(self.queries.list_tables)
        names = [str(row.require("table_name")) for row in rows]
        return sorted(names)

    def capture_definition(self, table_name: str) -> str:
        """Return the create statement for one table ("" if none reported)."""
        definition = self.cursor.fetch_value(
            self.queries.show_create_table, "definition", table_name
        )
        return definition or ""

    def enumerate_tables(
        self,
        model: DatabaseModel,
        tick: Optional[Callable[[str, int, int], None]] = None,
    ) -> DatabaseModel:
        """
        Populate the model with one Table per discovered name.

        Tables are added only after every definition was captured, so a
        failure leaves the model untouched.

        Args:
            model: Model to populate
            tick: Called as (table_name, done, total) before each table
        """
        names = self.list_tables()
        logger.info(f"Found {len(names)} tables")

        tables = []
        for done, name in enumerate(names):
            if tick:
                tick(name, done, len(names))
            tables.append(Table(name=name, definition=self.capture_definition(name)))
            logger.debug(f"Captured definition for {name}")

        for table in tables:
            model.add_table(table)
        return model
