"""
Index assembly.

The catalog reports one row per (index, column) pair. Rows of the same
index arrive contiguously with columns in index order, so consecutive rows
sharing a name fold into one composite index. Non-contiguous rows with a
repeated name would yield two entries; the fold relies on the catalog's
ordering and does not reorder its input.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, List, Optional

from schema_sync.errors import SchemaSyncError, UnexpectedRowShape
from schema_sync.metadata.cursor import CatalogCursor, CatalogRow
from schema_sync.metadata.mysql import MYSQL_QUERIES, CatalogQuerySet
from schema_sync.models import DatabaseModel, Index, IndexType

logger = logging.getLogger(__name__)


def is_unique(non_unique, table_name: Optional[str] = None) -> bool:
    """True iff the catalog non-unique flag is 0."""
    try:
        return int(non_unique) == 0
    except (TypeError, ValueError) as e:
        raise UnexpectedRowShape(
            f"Invalid non-unique flag: {non_unique!r}",
            table_name=table_name,
        ) from e


def _index_column(row: CatalogRow, table_name: str) -> str:
    column = row.get("column_name")
    if column is None:
        # Functional key parts report their expression instead
        column = row.get("expression")
    if column is None:
        raise UnexpectedRowShape(
            f"Index {row.get('key_name')} row has neither column nor expression",
            table_name=table_name,
        )
    return str(column)


def assemble_indexes(table_name: str, rows: Iterable[CatalogRow]) -> List[Index]:
    """
    Fold ordered index rows into Index entries sorted by name.

    Args:
        table_name: Owning table
        rows: SHOW INDEX rows in catalog order

    Returns:
        Indexes sorted by name, each keeping its columns in row order
    """
    indexes: List[Index] = []
    for row in rows:
        name = str(row.require("key_name"))
        column = _index_column(row, table_name)

        if indexes and indexes[-1].name == name:
            indexes[-1].columns.append(column)
            continue

        indexes.append(Index(
            table_name=table_name,
            name=name,
            index_type=IndexType.from_catalog(row.get("index_type")),
            unique=is_unique(row.require("non_unique"), table_name),
            columns=[column],
        ))

    return sorted(indexes, key=lambda i: i.name)


class IndexAssembler:
    """Collects per-table index lists."""

    def __init__(self, cursor: CatalogCursor, queries: CatalogQuerySet = MYSQL_QUERIES):
        self.cursor = cursor
        self.queries = queries

    def fetch_index_rows(self, table_name: str) -> List[CatalogRow]:
        """Fetch raw index rows for a table."""
        return self.cursor.fetch(self.queries.show_index, table_name)

    def collect_table(self, table_name: str) -> List[Index]:
        return assemble_indexes(table_name, self.fetch_index_rows(table_name))

    def assemble(
        self,
        model: DatabaseModel,
        tick: Optional[Callable[[str, int, int], None]] = None,
        on_error: Optional[Callable[[str, SchemaSyncError], bool]] = None,
    ) -> DatabaseModel:
        """
        Assemble indexes for every table in the model.

        Staging, ``tick`` and ``on_error`` behave as in
        ColumnCollector.collect_columns.
        """
        if not model.tables:
            logger.info("No tables to assemble indexes for")
            return model

        staged: Dict[str, List[Index]] = {}
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
            logger.debug(f"Assembled {len(staged[table.name])} indexes for {table.name}")

        for table in model.tables:
            if table.name in staged:
                table.indexes = staged[table.name]

        logger.info(f"Assembled indexes for {len(staged)} of {total} tables")
        return model
