"""
Row cursor adapter over a DB-API 2.0 connection.

Runs one catalog query at a time and exposes each result row by ordinal
position, addressed through the field names declared on the query.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from schema_sync.errors import (
    CatalogQueryError,
    SchemaConnectionError,
    UnexpectedRowShape,
)

logger = logging.getLogger(__name__)


def quote_identifier(name: str) -> str:
    """Quote an identifier with backticks, doubling embedded backticks."""
    return "`" + str(name).replace("`", "``") + "`"


@dataclass(frozen=True)
class CatalogQuery:
    """
    A fixed catalog query.

    ``sql`` may contain a ``{table}`` placeholder, rendered as a quoted
    identifier. When ``table_param`` is set the table name is passed as the
    single driver parameter instead.
    """
    name: str
    sql: str
    fields: Dict[str, int] = field(default_factory=dict)
    table_param: bool = False

    def render(self, table_name: Optional[str] = None):
        """Return (sql, params) for execution."""
        if table_name is None:
            return self.sql, None
        if self.table_param:
            return self.sql, (table_name,)
        return self.sql.format(table=quote_identifier(table_name)), None


class CatalogRow:
    """One result row, readable by declared field name or by ordinal."""

    __slots__ = ("_values", "_query", "_table_name")

    def __init__(self, values: Sequence[Any], query: CatalogQuery, table_name: Optional[str] = None):
        self._values = tuple(values)
        self._query = query
        self._table_name = table_name

    def __len__(self) -> int:
        return len(self._values)

    def __getitem__(self, ordinal: int) -> Any:
        return self._values[ordinal]

    def __repr__(self) -> str:
        return f"CatalogRow({self._query.name}, {self._values!r})"

    def get(self, name: str) -> Any:
        """Return a field value, or None when the row is too short for it."""
        ordinal = self._query.fields[name]
        if ordinal >= len(self._values):
            return None
        return self._values[ordinal]

    def require(self, name: str) -> Any:
        """Return a field value that must be present and non-null."""
        ordinal = self._query.fields[name]
        if ordinal >= len(self._values):
            raise UnexpectedRowShape(
                f"{self._query.name} row has {len(self._values)} values, "
                f"expected {name} at position {ordinal}",
                table_name=self._table_name,
            )
        value = self._values[ordinal]
        if value is None:
            raise UnexpectedRowShape(
                f"{self._query.name} row has NULL {name}",
                table_name=self._table_name,
            )
        return value


class CatalogCursor:
    """Executes catalog queries against an externally managed connection."""

    def __init__(self, connection: Any):
        self.connection = connection

    def validate(self) -> None:
        """
        Verify the connection is usable.

        Raises:
            SchemaConnectionError: if the connection is absent, closed, or
                fails a driver ping
        """
        if self.connection is None:
            raise SchemaConnectionError("No database connection provided")

        if getattr(self.connection, "open", True) is False:
            raise SchemaConnectionError("Database connection is closed")

        ping = getattr(self.connection, "ping", None)
        if callable(ping):
            try:
                ping(False)
            except Exception as e:
                raise SchemaConnectionError(f"Database connection check failed: {e}") from e

    def fetch(self, query: CatalogQuery, table_name: Optional[str] = None) -> List[CatalogRow]:
        """
        Run a catalog query and return all rows.

        Args:
            query: Query to execute
            table_name: Table the query is parameterized by, if any

        Returns:
            List of CatalogRow in the order the catalog reported them
        """
        sql, params = query.render(table_name)
        logger.debug(f"Running {query.name} for {table_name or '<schema>'}")

        try:
            cursor = self.connection.cursor()
        except Exception as e:
            raise CatalogQueryError(
                f"Could not open cursor for {query.name}: {e}",
                query_name=query.name,
                table_name=table_name,
            ) from e

        try:
            if params is None:
                cursor.execute(sql)
            else:
                cursor.execute(sql, params)
            raw_rows = cursor.fetchall()
        except Exception as e:
            logger.error(f"Catalog query {query.name} failed for {table_name or '<schema>'}: {e}")
            raise CatalogQueryError(
                f"Catalog query {query.name} failed: {e}",
                query_name=query.name,
                table_name=table_name,
            ) from e
        finally:
            cursor.close()

        return [CatalogRow(row, query, table_name) for row in raw_rows or ()]

    def fetch_value(self, query: CatalogQuery, name: str, table_name: Optional[str] = None) -> Any:
        """Return one field of the first row, or None for an empty result."""
        rows = self.fetch(query, table_name)
        if not rows:
            return None
        return rows[0].get(name)
