"""
Column collection.

Reads the column catalog of every enumerated table and stores a column list
sorted by name on each table.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, List, Optional

from schema_sync.errors import SchemaSyncError, UnexpectedRowShape
from schema_sync.metadata.cursor import CatalogCursor, CatalogRow
from schema_sync.metadata.mysql import MYSQL_QUERIES, NULLABLE_SENTINEL, CatalogQuerySet
from schema_sync.models import Column, ColumnDetail, DatabaseModel

logger = logging.getLogger(__name__)


def is_nullable(raw, sentinel: str = NULLABLE_SENTINEL) -> bool:
    """True iff the raw marker is exactly the catalog's nullable sentinel."""
    return raw == sentinel


def _optional_int(row: CatalogRow, field_name: str) -> Optional[int]:
    value = row.get(field_name)
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise UnexpectedRowShape(f"Invalid {field_name}: {value!r}") from e


def build_columns(
    table_name: str,
    rows: Iterable[CatalogRow],
    sentinel: str = NULLABLE_SENTINEL,
) -> List[Column]:
    """Build Column objects from SHOW COLUMNS rows, sorted by name."""
    columns = []
    for row in rows:
        default = row.get("default")
        columns.append(Column(
            table_name=table_name,
            name=str(row.require("field")),
            sql_type=str(row.require("type")),
            nullable=is_nullable(row.get("null"), sentinel),
            default_value=str(default) if default is not None else None,
        ))
    return sorted(columns, key=lambda c: c.name)


def build_column_details(rows: Iterable[CatalogRow]) -> Dict[str, ColumnDetail]:
    """Build {column_name: ColumnDetail} from information_schema rows."""
    details = {}
    for row in rows:
        details[str(row.require("column_name"))] = ColumnDetail(
            ordinal_position=_optional_int(row, "ordinal_position"),
            data_type=row.get("data_type"),
            column_type=row.get("column_type"),
            column_key=row.get("column_key") or None,
            extra=row.get("extra") or None,
            character_maximum_length=_optional_int(row, "character_maximum_length"),
            numeric_precision=_optional_int(row, "numeric_precision"),
            numeric_scale=_optional_int(row, "numeric_scale"),
            character_set_name=row.get("character_set_name"),
            collation_name=row.get("collation_name"),
            comment=row.get("comment") or None,
        )
    return details


class ColumnCollector:
    """Collects per-table column lists."""

    def __init__(
        self,
        cursor: CatalogCursor,
        queries: CatalogQuerySet = MYSQL_QUERIES,
        column_details: bool = False,
    ):
        self.cursor = cursor
        self.queries = queries
        self.column_details = column_details

    def fetch_columns(self, table_name: str) -> List[CatalogRow]:
        """Fetch raw column rows for a table."""
        return self.cursor.fetch(self.queries.show_columns, table_name)

    def collect_table(self, table_name: str) -> List[Column]:
        """Return the sorted column list for one table."""
        columns = build_columns(
            table_name,
            self.fetch_columns(table_name),
            self.queries.nullable_sentinel,
        )

        if self.column_details:
            details = build_column_details(
                self.cursor.fetch(self.queries.column_details, table_name)
            )
            for col in columns:
                col.detail = details.get(col.name)

        return columns

    def collect_columns(
        self,
        model: DatabaseModel,
        tick: Optional[Callable[[str, int, int], None]] = None,
        on_error: Optional[Callable[[str, SchemaSyncError], bool]] = None,
    ) -> DatabaseModel:
        """
        Collect columns for every table in the model.

        Results are staged and committed only after the loop finishes, so a
        failure leaves every table as it was.

        Args:
            model: Model whose tables are populated
            tick: Called as (table_name, done, total) before each table
            on_error: Called with a per-table failure; returning True skips
                the table, otherwise the error propagates

        Returns:
            The updated model
        """
        if not model.tables:
            logger.info("No tables to collect columns for")
            return model

        staged: Dict[str, List[Column]] = {}
        total = len(model.tables)
        for done, table in enumerate(model.tables):
            if tick:
                tick(table.name, done, total)
            try:
                staged[table.name] = self.collect_table(table.name)
            except SchemaSyncError as e:
                if e.table_name is None:
                    e.table_name = table.name
                if on_error and on_error(table.name, e):
                    continue
                raise
            logger.debug(f"Collected {len(staged[table.name])} columns for {table.name}")

        for table in model.tables:
            if table.name in staged:
                table.columns = staged[table.name]

        logger.info(f"Collected columns for {len(staged)} of {total} tables")
        return model
