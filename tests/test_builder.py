"""
Tests for the schema builder.

Covers the end-to-end build, determinism, failure propagation, isolation
mode and cancellation.
"""

import threading

import pytest

from conftest import FakeConnection, column_row, index_row
from schema_sync.builder import SchemaBuilder, build_schema
from schema_sync.config import IntrospectionConfig
from schema_sync.errors import (
    BuildCancelled,
    CatalogQueryError,
    SchemaConnectionError,
    SchemaSyncError,
    UnexpectedRowShape,
)
from schema_sync.models import DatabaseModel, Index, IndexType, Table


class TestBuildSchema:
    """End-to-end builds against a fake catalog."""

    def test_users_and_orders(self):
        conn = FakeConnection({
            "users": {
                "columns": [
                    column_row("email", "varchar(255)", "NO"),
                    column_row("id", "int", "NO"),
                ],
                "indexes": [index_row("users", "ux_login", "email", non_unique=0)],
            },
            "orders": {},
        })

        model = build_schema(conn)

        assert model.table_names == ["orders", "users"]
        users = model.get_table("users")
        assert users.column_names == ["email", "id"]
        assert [c.nullable for c in users.columns] == [False, False]
        assert users.indexes == [
            Index(
                table_name="users",
                name="ux_login",
                index_type=IndexType.BTREE,
                unique=True,
                columns=["email"],
            )
        ]
        assert model.get_table("orders").columns == []
        assert model.schema_name == "shop"
        assert model.sealed

    def test_sorted_everywhere(self, shop_connection):
        model = build_schema(shop_connection)

        assert model.table_names == sorted(model.table_names)
        for table in model.tables:
            assert table.column_names == sorted(table.column_names)
            assert table.index_names == sorted(table.index_names)
        assert model.get_table("orders").get_index("ix_user_created").columns == [
            "user_id", "created_at",
        ]

    def test_deterministic(self, shop_tables):
        first = build_schema(FakeConnection(shop_tables))
        second = build_schema(FakeConnection(dict(reversed(list(shop_tables.items())))))
        assert first == second

    def test_snapshots_byte_identical(self, shop_tables, tmp_path):
        build_schema(FakeConnection(shop_tables)).save(tmp_path / "a.json")
        build_schema(FakeConnection(shop_tables)).save(tmp_path / "b.json")
        assert (tmp_path / "a.json").read_bytes() == (tmp_path / "b.json").read_bytes()

    def test_zero_tables(self):
        conn = FakeConnection({})
        model = build_schema(conn)

        assert model.tables == []
        assert conn.queried("show_columns") == []
        assert conn.queried("show_index") == []

    def test_phases_run_in_order(self, shop_connection):
        build_schema(shop_connection)
        statements = [sql.split("`")[0].strip() for sql, _ in shop_connection.executed]
        first_columns = statements.index("SHOW COLUMNS FROM")
        first_index = statements.index("SHOW INDEX FROM")
        last_create = max(i for i, s in enumerate(statements) if s == "SHOW CREATE TABLE")
        last_columns = max(i for i, s in enumerate(statements) if s == "SHOW COLUMNS FROM")
        assert last_create < first_columns
        assert last_columns < first_index

    def test_column_details_enabled(self, shop_connection):
        build_schema(shop_connection, config=IntrospectionConfig(column_details=True))
        assert len(shop_connection.queried("column_details")) == 2


class TestBuildFailures:
    """Failures abort the whole build."""

    def test_missing_connection(self):
        with pytest.raises(SchemaConnectionError) as exc_info:
            build_schema(None)
        assert exc_info.value.phase == "connect"

    def test_positional_only_ping(self, shop_tables):
        class PositionalPingConnection(FakeConnection):
            def ping(self, *args):
                self.pings = args

        conn = PositionalPingConnection(shop_tables)
        model = build_schema(conn)

        assert conn.pings == (False,)
        assert model.table_names == ["orders", "users"]

    def test_list_tables_failure(self, shop_connection):
        shop_connection.fail("list_tables")
        with pytest.raises(CatalogQueryError) as exc_info:
            build_schema(shop_connection)
        assert exc_info.value.phase == "tables"

    def test_column_failure_names_phase_and_table(self, shop_connection):
        shop_connection.fail("show_columns", "users")
        builder = SchemaBuilder(shop_connection)

        with pytest.raises(CatalogQueryError) as exc_info:
            builder.build()

        err = exc_info.value
        assert err.phase == "columns"
        assert err.table_name == "users"
        assert "phase=columns" in str(err)
        assert "table=users" in str(err)
        assert not builder.model.sealed
        assert shop_connection.queried("show_index") == []

    def test_index_failure(self, shop_connection):
        shop_connection.fail("show_index", "orders")
        with pytest.raises(CatalogQueryError) as exc_info:
            build_schema(shop_connection)
        assert exc_info.value.phase == "indexes"
        assert exc_info.value.table_name == "orders"

    def test_no_retry(self, shop_connection):
        shop_connection.fail("show_columns", "orders")
        with pytest.raises(CatalogQueryError):
            build_schema(shop_connection)
        key = shop_connection.key("show_columns", "orders")
        assert shop_connection.executed.count(key) == 1

    def test_builds_once(self, shop_connection):
        builder = SchemaBuilder(shop_connection)
        builder.build()
        with pytest.raises(RuntimeError):
            builder.build()


class TestIsolation:
    """Per-table isolation when on_error is "isolate"."""

    def test_failing_table_dropped(self, shop_connection):
        shop_connection.fail("show_columns", "orders")
        model = build_schema(shop_connection, config=IntrospectionConfig(on_error="isolate"))

        assert model.table_names == ["users"]
        assert len(model.errors) == 1
        assert model.errors[0].phase == "columns"
        assert model.errors[0].table_name == "orders"
        assert model.get_table("users").column_names == ["email", "id"]
        assert shop_connection.key("show_index", "orders") not in shop_connection.executed

    def test_index_failure_isolated(self, shop_connection):
        shop_connection.fail("show_index", "users")
        model = build_schema(shop_connection, config=IntrospectionConfig(on_error="isolate"))

        assert model.table_names == ["orders"]
        assert model.errors[0].phase == "indexes"

    def test_bad_row_isolated(self, shop_tables):
        shop_tables["orders"]["columns"].append(column_row("total", None))
        conn = FakeConnection(shop_tables)
        model = build_schema(conn, config=IntrospectionConfig(on_error="isolate"))

        assert model.table_names == ["users"]
        assert model.errors[0].phase == "columns"
        assert model.errors[0].table_name == "orders"
        assert model.get_table("users").column_names == ["email", "id"]

    def test_bad_row_aborts_by_default(self, shop_tables):
        shop_tables["users"]["indexes"].append(index_row("users", "ix_bad", "email", non_unique="no"))
        with pytest.raises(UnexpectedRowShape) as exc_info:
            build_schema(FakeConnection(shop_tables))
        assert exc_info.value.phase == "indexes"
        assert exc_info.value.table_name == "users"

    def test_enumeration_failure_still_fatal(self, shop_connection):
        shop_connection.fail("show_create_table", "users")
        with pytest.raises(CatalogQueryError):
            build_schema(shop_connection, config=IntrospectionConfig(on_error="isolate"))


class TestCancellation:
    """Cancellation between tables."""

    def test_cancel_before_build(self, shop_connection):
        event = threading.Event()
        event.set()

        with pytest.raises(BuildCancelled) as exc_info:
            build_schema(shop_connection, cancel_event=event)

        assert exc_info.value.phase == "tables"
        assert shop_connection.queried("list_tables") == []

    def test_cancel_between_tables(self, shop_connection):
        event = threading.Event()

        def on_progress(phase, table_name, done, total):
            if phase == "columns" and done == 1:
                event.set()

        builder = SchemaBuilder(shop_connection, cancel_event=event, progress_callback=on_progress)
        with pytest.raises(BuildCancelled) as exc_info:
            builder.build()

        err = exc_info.value
        assert isinstance(err, SchemaSyncError)
        assert err.phase == "columns"
        assert err.tables_done == 1
        # The staged columns of the first table were never committed
        assert all(t.columns == [] for t in builder.model.tables)


class TestProgress:
    """Progress callback reporting."""

    def test_reports_each_phase(self, shop_connection):
        events = []
        build_schema(shop_connection, progress_callback=lambda *args: events.append(args))

        assert ("tables", "orders", 0, 2) in events
        assert ("columns", "users", 2, 2) in events
        assert events[-1] == ("indexes", "users", 2, 2)


class TestPhaseMethods:
    """Phase-scoped methods return the evolving model."""

    def test_phases_individually(self, shop_connection):
        builder = SchemaBuilder(shop_connection)
        model = builder.enumerate_tables()
        assert isinstance(model, DatabaseModel)
        assert model.get_table("users").columns == []

        model = builder.collect_columns()
        assert model.get_table("users").column_names == ["email", "id"]
        assert model.get_table("users").indexes == []

        model = builder.assemble_indexes()
        assert model.get_table("users").index_names == ["PRIMARY", "ux_login"]
        assert isinstance(model.get_table("users"), Table)
