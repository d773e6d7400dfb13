"""
MySQL catalog query set.

Each query declares the ordinal of every field the collectors read, taken
from the column order MySQL reports for the statement.
"""

from __future__ import annotations

from dataclasses import dataclass

from schema_sync.metadata.cursor import CatalogQuery

# Nullability sentinel in SHOW COLUMNS / information_schema output
NULLABLE_SENTINEL = "YES"


CURRENT_DATABASE = CatalogQuery(
    name="current_database",
    sql="SELECT DATABASE()",
    fields={"database": 0},
)

LIST_TABLES = CatalogQuery(
    name="list_tables",
    sql="SHOW FULL TABLES WHERE Table_type = 'BASE TABLE'",
    fields={"table_name": 0, "table_type": 1},
)

SHOW_CREATE_TABLE = CatalogQuery(
    name="show_create_table",
    sql="SHOW CREATE TABLE {table}",
    fields={"table_name": 0, "definition": 1},
)

SHOW_COLUMNS = CatalogQuery(
    name="show_columns",
    sql="SHOW COLUMNS FROM {table}",
    fields={
        "field": 0,
        "type": 1,
        "null": 2,
        "key": 3,
        "default": 4,
        "extra": 5,
    },
)

SHOW_INDEX = CatalogQuery(
    name="show_index",
    sql="SHOW INDEX FROM {table}",
    fields={
        "table": 0,
        "non_unique": 1,
        "key_name": 2,
        "seq_in_index": 3,
        "column_name": 4,
        "collation": 5,
        "cardinality": 6,
        "sub_part": 7,
        "packed": 8,
        "null": 9,
        "index_type": 10,
        "comment": 11,
        "index_comment": 12,
        "visible": 13,
        "expression": 14,
    },
)

COLUMN_DETAILS = CatalogQuery(
    name="column_details",
    sql=(
        "SELECT COLUMN_NAME, ORDINAL_POSITION, DATA_TYPE, COLUMN_TYPE, "
        "COLUMN_KEY, EXTRA, CHARACTER_MAXIMUM_LENGTH, NUMERIC_PRECISION, "
        "NUMERIC_SCALE, CHARACTER_SET_NAME, COLLATION_NAME, COLUMN_COMMENT "
        "FROM information_schema.COLUMNS "
        "WHERE TABLE_SCHEMA = DATABASE() AND TABLE_NAME = %s "
        "ORDER BY ORDINAL_POSITION"
    ),
    fields={
        "column_name": 0,
        "ordinal_position": 1,
        "data_type": 2,
        "column_type": 3,
        "column_key": 4,
        "extra": 5,
        "character_maximum_length": 6,
        "numeric_precision": 7,
        "numeric_scale": 8,
        "character_set_name": 9,
        "collation_name": 10,
        "comment": 11,
    },
    table_param=True,
)


@dataclass(frozen=True)
class CatalogQuerySet:
    """The full set of queries one build runs."""
    current_database: CatalogQuery = CURRENT_DATABASE
    list_tables: CatalogQuery = LIST_TABLES
    show_create_table: CatalogQuery = SHOW_CREATE_TABLE
    show_columns: CatalogQuery = SHOW_COLUMNS
    show_index: CatalogQuery = SHOW_INDEX
    column_details: CatalogQuery = COLUMN_DETAILS
    nullable_sentinel: str = NULLABLE_SENTINEL


MYSQL_QUERIES = CatalogQuerySet()
