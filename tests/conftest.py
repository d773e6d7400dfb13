"""Shared fixtures: an in-memory DB-API connection serving MySQL catalog rows."""

from typing import Any, Dict, List, Optional, Tuple

import pytest

from schema_sync.metadata.mysql import MYSQL_QUERIES


def column_row(name: str, sql_type: str, null: Any = "NO", default: Any = None, key: str = "", extra: str = "") -> Tuple:
    """A SHOW COLUMNS row."""
    return (name, sql_type, null, key, default, extra)


def index_row(
    table: str,
    key_name: str,
    column: Optional[str],
    non_unique: Any = 1,
    seq: int = 1,
    index_type: Optional[str] = "BTREE",
    expression: Optional[str] = None,
) -> Tuple:
    """A SHOW INDEX row as reported by MySQL 8."""
    return (
        table, non_unique, key_name, seq, column, "A", 0, None, None, "",
        index_type, "", "", "YES", expression,
    )


class FakeCursor:
    def __init__(self, conn: "FakeConnection"):
        self.conn = conn
        self._rows: List[Tuple] = []
        self.closed = False

    def execute(self, sql: str, params: Optional[Tuple] = None) -> None:
        key = (sql, params)
        self.conn.executed.append(key)
        if key in self.conn.failures:
            raise self.conn.failures[key]
        self._rows = list(self.conn.responses.get(key, []))

    def fetchall(self) -> List[Tuple]:
        return self._rows

    def close(self) -> None:
        self.closed = True
        self.conn.closed_cursors += 1


class FakeConnection:
    """
    Serves canned rows keyed by (sql, params).

    Tables are described as {name: {"ddl": str, "columns": [rows],
    "indexes": [rows], "details": [rows]}}.
    """

    def __init__(self, tables: Optional[Dict[str, Dict[str, Any]]] = None, database: str = "shop"):
        self.responses: Dict[Tuple[str, Any], List[Tuple]] = {}
        self.failures: Dict[Tuple[str, Any], Exception] = {}
        self.executed: List[Tuple[str, Any]] = []
        self.closed_cursors = 0
        self.open = True

        self.responses[(MYSQL_QUERIES.current_database.sql, None)] = [(database,)]
        tables = tables or {}
        self.responses[(MYSQL_QUERIES.list_tables.sql, None)] = [
            (name, "BASE TABLE") for name in tables
        ]
        for name, table in tables.items():
            self.responses[self.key("show_create_table", name)] = [
                (name, table.get("ddl", f"CREATE TABLE `{name}` ()"))
            ]
            self.responses[self.key("show_columns", name)] = table.get("columns", [])
            self.responses[self.key("show_index", name)] = table.get("indexes", [])
            self.responses[self.key("column_details", name)] = table.get("details", [])

    @staticmethod
    def key(query_name: str, table_name: Optional[str] = None) -> Tuple[str, Any]:
        query = getattr(MYSQL_QUERIES, query_name)
        return query.render(table_name)

    def fail(self, query_name: str, table_name: Optional[str] = None, error: Optional[Exception] = None) -> None:
        self.failures[self.key(query_name, table_name)] = error or RuntimeError("access denied")

    def cursor(self) -> FakeCursor:
        return FakeCursor(self)

    def queried(self, query_name: str) -> List[Tuple[str, Any]]:
        prefix = getattr(MYSQL_QUERIES, query_name).sql.split("{")[0]
        return [k for k in self.executed if k[0].startswith(prefix)]


@pytest.fixture
def shop_tables():
    """Two tables: users with a unique login index, orders with a composite index."""
    return {
        "users": {
            "ddl": "CREATE TABLE `users` (`id` int NOT NULL, `email` varchar(255) NOT NULL)",
            "columns": [
                column_row("id", "int", "NO", key="PRI"),
                column_row("email", "varchar(255)", "NO"),
            ],
            "indexes": [
                index_row("users", "PRIMARY", "id", non_unique=0),
                index_row("users", "ux_login", "email", non_unique=0),
            ],
        },
        "orders": {
            "ddl": "CREATE TABLE `orders` (`id` int NOT NULL, `user_id` int, `created_at` datetime)",
            "columns": [
                column_row("user_id", "int", "YES"),
                column_row("id", "int", "NO", key="PRI"),
                column_row("created_at", "datetime", "YES", default="CURRENT_TIMESTAMP"),
            ],
            "indexes": [
                index_row("orders", "PRIMARY", "id", non_unique=0),
                index_row("orders", "ix_user_created", "user_id", seq=1),
                index_row("orders", "ix_user_created", "created_at", seq=2),
            ],
        },
    }


@pytest.fixture
def shop_connection(shop_tables):
    return FakeConnection(shop_tables)
