"""
Catalog introspection components.

Provides the row cursor adapter, the MySQL catalog query set, and the
table, column and index collectors the schema builder drives.
"""

from schema_sync.metadata.cursor import CatalogCursor, CatalogQuery, CatalogRow
from schema_sync.metadata.mysql import MYSQL_QUERIES, CatalogQuerySet
from schema_sync.metadata.tables import TableEnumerator
from schema_sync.metadata.columns import ColumnCollector
from schema_sync.metadata.indexes import IndexAssembler, assemble_indexes

__all__ = [
    "CatalogCursor",
    "CatalogQuery",
    "CatalogRow",
    "CatalogQuerySet",
    "MYSQL_QUERIES",
    "TableEnumerator",
    "ColumnCollector",
    "IndexAssembler",
    "assemble_indexes",
]
