from __future__ import annotations

from collections.abc import Callable
from types import SimpleNamespace

import pytest
import sqlalchemy as sa
from sqlalchemy import text
from sqlalchemy.engine import URL
from sqlalchemy.exc import OperationalError
from sqlalchemy.sql.elements import TextClause

from reportsql_mcp.catalog import Catalog, ConnectionProfile, FernetCipher
from reportsql_mcp.catalog.catalog import _apply_statement_timeout, _reset_statement_timeout
from reportsql_mcp.catalog.types import LogicalKind
from reportsql_mcp.exceptions import CatalogConnectionError, ExecutionError
from reportsql_mcp.services.config_service import EngineConfig

MakeCatalog = Callable[..., Catalog]
MakeProfile = Callable[..., ConnectionProfile]


def _setup_orders(engine: sa.Engine) -> None:
    with engine.begin() as conn:
        conn.execute(
            text(
                "CREATE TABLE orders(id INTEGER PRIMARY KEY, total NUMERIC(10, 2), "
                "note VARCHAR(40) NOT NULL DEFAULT 'n/a')"
            )
        )
        conn.execute(text("CREATE TABLE customers(id INTEGER PRIMARY KEY, name TEXT)"))
        conn.exec_driver_sql(
            "INSERT INTO orders(total, note) VALUES "
            "(50, 'small'), (150, '100% off:code'), (250, 'large')"
        )


def test_connect_and_disconnect(
    sqlite_engine: sa.Engine, make_catalog: MakeCatalog, make_profile: MakeProfile
) -> None:
    _setup_orders(sqlite_engine)
    catalog = make_catalog()
    result = catalog.connect(make_profile())
    assert result.ok
    assert result.error is None
    assert catalog.is_connected
    assert catalog.dialect.vendor_key == "postgresql"

    catalog.disconnect()
    assert not catalog.is_connected
    catalog.disconnect()  # idempotent


def test_connect_rejects_invalid_profile(
    make_catalog: MakeCatalog, make_profile: MakeProfile
) -> None:
    catalog = make_catalog()
    result = catalog.connect(make_profile(host=""))
    assert not result.ok
    assert isinstance(result.error, CatalogConnectionError)
    assert not catalog.is_connected


def test_connect_rejects_unknown_vendor(
    make_catalog: MakeCatalog, make_profile: MakeProfile
) -> None:
    result = make_catalog().connect(make_profile("db2"))
    assert not result.ok
    assert "Unsupported database vendor" in result.message


def test_connect_reports_failed_validation(
    make_catalog: MakeCatalog, make_profile: MakeProfile
) -> None:
    # SQLite has no DUAL table, so the Oracle validation query fails.
    catalog = make_catalog()
    result = catalog.connect(make_profile("oracle", port=1521))
    assert not result.ok
    assert "Could not connect to Test" in result.message
    assert not catalog.is_connected


def test_connect_reports_driver_errors(cipher: FernetCipher, make_profile: MakeProfile) -> None:
    def broken(_url: URL, _config: EngineConfig) -> sa.Engine:
        return sa.create_engine("sqlite+pysqlite:////nonexistent-dir/reports.db")

    catalog = Catalog(EngineConfig(), cipher, engine_factory=broken)
    result = catalog.connect(make_profile())
    assert not result.ok
    assert isinstance(result.error, CatalogConnectionError)


def test_connect_decrypts_password_token(
    cipher: FernetCipher, make_profile: MakeProfile, sqlite_engine: sa.Engine
) -> None:
    seen: list[URL] = []

    def factory(url: URL, _config: EngineConfig) -> sa.Engine:
        seen.append(url)
        return sqlite_engine

    catalog = Catalog(EngineConfig(), cipher, engine_factory=factory)
    assert catalog.connect(make_profile(password_token=cipher.encrypt("s3cret"))).ok
    assert seen[0].password == "s3cret"
    assert seen[0].username == "tester"
    assert seen[0].drivername == "postgresql+psycopg2"


def test_test_connection_does_not_keep_pool(
    make_catalog: MakeCatalog, make_profile: MakeProfile
) -> None:
    catalog = make_catalog()
    assert catalog.test_connection(make_profile()).ok
    assert not catalog.is_connected


def test_list_tables_sorted(
    sqlite_engine: sa.Engine, make_catalog: MakeCatalog, make_profile: MakeProfile
) -> None:
    _setup_orders(sqlite_engine)
    catalog = make_catalog()
    catalog.connect(make_profile())
    assert catalog.list_tables() == ["customers", "orders"]


def test_list_tables_excludes_sqlserver_system_names(
    sqlite_engine: sa.Engine, make_catalog: MakeCatalog, make_profile: MakeProfile
) -> None:
    with sqlite_engine.begin() as conn:
        for name in ["sys.foo", "Customers", "information_schema.x", "spt_monitor"]:
            conn.execute(text(f'CREATE TABLE "{name}"(id INTEGER)'))
    catalog = make_catalog()
    catalog.connect(make_profile("sqlserver", port=1433))
    assert catalog.list_tables() == ["Customers"]


def test_introspection_when_not_connected(make_catalog: MakeCatalog) -> None:
    catalog = make_catalog()
    assert catalog.list_tables() == []
    assert catalog.list_columns("orders") == []


def test_list_columns(
    sqlite_engine: sa.Engine, make_catalog: MakeCatalog, make_profile: MakeProfile
) -> None:
    _setup_orders(sqlite_engine)
    catalog = make_catalog()
    catalog.connect(make_profile())
    columns = catalog.list_columns("orders")

    assert [c.name for c in columns] == ["id", "total", "note"]
    by_name = {c.name: c for c in columns}
    assert by_name["id"].is_primary_key
    assert by_name["total"].logical_kind is LogicalKind.NUMERIC
    assert by_name["total"].size == 10
    assert by_name["note"].logical_kind is LogicalKind.TEXT
    assert by_name["note"].size == 40
    assert not by_name["note"].nullable
    assert by_name["note"].default_value is not None


def test_list_columns_unknown_table_is_empty(
    make_catalog: MakeCatalog, make_profile: MakeProfile
) -> None:
    catalog = make_catalog()
    catalog.connect(make_profile())
    assert catalog.list_columns("missing") == []


def test_execute_passes_sql_verbatim(
    sqlite_engine: sa.Engine, make_catalog: MakeCatalog, make_profile: MakeProfile
) -> None:
    _setup_orders(sqlite_engine)
    catalog = make_catalog()
    catalog.connect(make_profile())

    rows = catalog.execute("SELECT id, note FROM orders WHERE note LIKE '%:code%' ORDER BY id")
    assert rows.column_names == ["id", "note"]
    assert rows.rows == [{"id": 2, "note": "100% off:code"}]

    limited = catalog.execute("SELECT id FROM orders ORDER BY id", max_rows=2)
    assert [r["id"] for r in limited.rows] == [1, 2]
    assert catalog.count("SELECT COUNT(*) FROM orders WHERE total > 100") == 2


def test_execute_errors_raise_execution_error(
    make_catalog: MakeCatalog, make_profile: MakeProfile
) -> None:
    catalog = make_catalog()
    with pytest.raises(ExecutionError, match="Not connected"):
        catalog.execute("SELECT 1")

    catalog.connect(make_profile())
    with pytest.raises(ExecutionError) as info:
        catalog.count("SELECT COUNT(*) FROM missing")
    assert info.value.sql == "SELECT COUNT(*) FROM missing"


def test_introspection_survives_lost_connection(
    sqlite_engine: sa.Engine,
    make_catalog: MakeCatalog,
    make_profile: MakeProfile,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    _setup_orders(sqlite_engine)
    catalog = make_catalog()
    assert catalog.connect(make_profile()).ok

    def lost() -> sa.Connection:
        raise OperationalError("SELECT 1", {}, Exception("server closed the connection"))

    monkeypatch.setattr(sqlite_engine, "connect", lost)
    assert catalog.list_columns("orders") == []
    assert catalog.list_tables() == []
    with pytest.raises(ExecutionError):
        catalog.count("SELECT COUNT(*) FROM orders")


class _RecordingConnection:
    def __init__(self, dialect_name: str) -> None:
        self.dialect = SimpleNamespace(name=dialect_name)
        self.statements: list[str] = []

    def execute(self, statement: TextClause) -> None:
        self.statements.append(str(statement))


@pytest.mark.parametrize(
    ("dialect_name", "expected"),
    [
        ("postgresql", ["SET LOCAL statement_timeout = 5000"]),
        (
            "mysql",
            ["SET SESSION MAX_EXECUTION_TIME = 5000", "SET SESSION MAX_EXECUTION_TIME = 0"],
        ),
        ("mssql", ["SET LOCK_TIMEOUT 5000", "SET LOCK_TIMEOUT -1"]),
        ("oracle", []),
    ],
)
def test_validation_timeout_is_not_left_on_pooled_connection(
    dialect_name: str, expected: list[str]
) -> None:
    conn = _RecordingConnection(dialect_name)
    reset = _apply_statement_timeout(conn, 5)  # type: ignore[arg-type]
    _reset_statement_timeout(conn, reset)  # type: ignore[arg-type]
    assert conn.statements == expected
