"""Pooled catalog over one connected database.

The ``Catalog`` owns a SQLAlchemy engine (the connection pool) for the
profile it is connected to. It exposes metadata introspection filtered to
user objects and raw statement execution for the executor.

Boundary behaviour:
- ``connect`` never raises; it returns a ``ConnectResult``
- introspection failures are logged and yield empty lists
- ``execute`` and ``count`` raise ``ExecutionError`` for the executor to convert

The catalog does not serialize calls. ``connect``/``disconnect`` on one
instance must not run concurrently; queries may run concurrently up to the
pool size.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from cryptography.fernet import InvalidToken
from fastmcp.utilities.logging import get_logger
import sqlalchemy as sa
from sqlalchemy.engine import URL, Connection, Engine, make_url
from sqlalchemy.engine.reflection import Inspector
from sqlalchemy.exc import SQLAlchemyError

from reportsql_mcp.dialects import DialectProfile, empty_profile
from reportsql_mcp.exceptions import CatalogConnectionError, ExecutionError, IntrospectionError
from reportsql_mcp.services.config_service import ConfigService, EngineConfig

from .credentials import CredentialCipher, reveal_password
from .profile import ConnectionProfile, mask_password
from .types import ColumnDescriptor

_logger = get_logger(__name__)

EngineFactory = Callable[[URL, EngineConfig], Engine]


@dataclass(frozen=True)
class ConnectResult:
    """Outcome of ``Catalog.connect``."""

    ok: bool
    message: str
    error: CatalogConnectionError | None = None


@dataclass
class QueryRows:
    """Ordered column names and row maps returned by a statement."""

    column_names: list[str] = field(default_factory=list)
    rows: list[dict[str, Any]] = field(default_factory=list)


class Catalog:
    """Introspection and execution surface for one connection profile.

    Attributes:
        config: Engine thresholds and pool settings
        cipher: Decrypts stored password tokens at connect time
    """

    def __init__(
        self,
        config: EngineConfig,
        cipher: CredentialCipher,
        *,
        engine_factory: EngineFactory = ConfigService.create_database_engine,
    ) -> None:
        self.config = config
        self.cipher = cipher
        self._engine_factory = engine_factory
        self._engine: Engine | None = None
        self._profile: ConnectionProfile | None = None
        self._connected = False

    # ---- lifecycle ----------------------------------------------------------
    @property
    def is_connected(self) -> bool:
        return self._connected and self._engine is not None

    @property
    def profile(self) -> ConnectionProfile | None:
        return self._profile

    @property
    def dialect(self) -> DialectProfile:
        return self._profile.dialect if self._profile is not None else empty_profile()

    @property
    def engine(self) -> Engine | None:
        return self._engine

    def connect(self, profile: ConnectionProfile) -> ConnectResult:
        """Open a pool for ``profile`` and validate it with one round-trip."""
        self.disconnect()
        try:
            engine = self._open(profile)
        except CatalogConnectionError as exc:
            _logger.error("Failed to connect to database: %s", exc)
            return ConnectResult(ok=False, message=str(exc), error=exc)

        self._engine = engine
        self._profile = profile
        self._connected = True
        _logger.info(
            "Database connection established: %s", mask_password(profile.connection_url)
        )
        return ConnectResult(ok=True, message=f"Connected to {profile.name}")

    def test_connection(self, profile: ConnectionProfile) -> ConnectResult:
        """Validate a profile without keeping its pool open."""
        try:
            engine = self._open(profile)
        except CatalogConnectionError as exc:
            _logger.warning("Connection test failed: %s", exc)
            return ConnectResult(ok=False, message=str(exc), error=exc)
        engine.dispose()
        return ConnectResult(ok=True, message="Connection test succeeded")

    def disconnect(self) -> None:
        """Release the pool. Safe to call repeatedly."""
        engine = self._engine
        self._engine = None
        self._connected = False
        if engine is None:
            return
        try:
            engine.dispose()
            _logger.info("Database connection closed")
        except SQLAlchemyError as exc:
            _logger.warning("Error while disconnecting from database: %s", exc)

    def _open(self, profile: ConnectionProfile) -> Engine:
        if not profile.is_valid():
            msg = "Connection profile is incomplete"
            raise CatalogConnectionError(msg)
        dialect = profile.dialect
        if not dialect.is_resolved:
            msg = f"Unsupported database vendor: {profile.vendor_key!r}"
            raise CatalogConnectionError(msg)

        engine: Engine | None = None
        try:
            password = reveal_password(self.cipher, profile.password_token)
            url = make_url(profile.connection_url).set(
                username=profile.username, password=password
            )
            engine = self._engine_factory(url, self.config)
            with engine.connect() as conn, conn.begin():
                reset = _apply_statement_timeout(conn, self.config.validation_timeout_sec)
                try:
                    conn.execute(sa.text(dialect.validation_query))
                finally:
                    _reset_statement_timeout(conn, reset)
        except (SQLAlchemyError, ImportError, InvalidToken, ValueError) as exc:
            if engine is not None:
                engine.dispose()
            msg = f"Could not connect to {profile.name}: {exc}"
            raise CatalogConnectionError(msg) from exc
        return engine

    # ---- introspection ------------------------------------------------------
    def list_tables(self) -> list[str]:
        """User table names, sorted; tables outside the default schema are qualified."""
        if not self.is_connected or self._engine is None:
            _logger.warning("Not connected to database")
            return []
        dialect = self.dialect
        try:
            with self._engine.connect() as conn:
                insp: Inspector = sa.inspect(conn)
                default_schema = insp.default_schema_name
                names: list[str] = []
                for schema in self._user_schemas(insp, default_schema):
                    for table in insp.get_table_names(schema=schema):
                        qualified = table if schema == default_schema else f"{schema}.{table}"
                        if dialect.is_system_object(table) or dialect.is_system_object(qualified):
                            continue
                        names.append(qualified)
        except SQLAlchemyError as exc:
            _logger.warning("Failed to get table names: %s", exc)
            return []

        names.sort()
        _logger.info("Found %d tables", len(names))
        return names

    def _user_schemas(self, insp: Inspector, default_schema: str | None) -> list[str | None]:
        if not self.dialect.list_all_schemas:
            return [default_schema]
        try:
            schemas = insp.get_schema_names()
        except SQLAlchemyError as e:
            _logger.warning("Could not list schemas, using the default schema: %s", e)
            return [default_schema]
        return [s for s in schemas if s == default_schema or not self.dialect.is_system_object(s)]

    def list_columns(self, table: str) -> list[ColumnDescriptor]:
        """Columns of ``table`` in catalog order; ``[]`` means unknown, not empty."""
        if not self.is_connected or self._engine is None:
            _logger.warning("Not connected to database")
            return []
        try:
            with self._engine.connect() as conn:
                columns = self._read_columns(sa.inspect(conn), table)
        except IntrospectionError as exc:
            _logger.warning("%s", exc)
            return []
        except SQLAlchemyError as exc:
            _logger.warning("Failed to read columns for table %s: %s", table, exc)
            return []

        _logger.info("Found %d columns for table %s", len(columns), table)
        return columns

    def _read_columns(self, insp: Inspector, table: str) -> list[ColumnDescriptor]:
        schema, name = self._split_table(insp, table)
        try:
            columns_metadata = insp.get_columns(name, schema=schema)
        except SQLAlchemyError as e:
            msg = f"Failed to get columns for table {table}: {e}"
            raise IntrospectionError(msg) from e

        try:
            pk = insp.get_pk_constraint(name, schema=schema)
            primary_key_columns = set(pk.get("constrained_columns") or [])
        except SQLAlchemyError as e:
            _logger.debug("Cannot get PK for %s: %s", table, e)
            primary_key_columns = set()

        return [
            ColumnDescriptor(
                name=col["name"],
                native_type_name=_type_name(col["type"]),
                size=_type_size(col["type"]),
                nullable=bool(col.get("nullable", True)),
                default_value=None if col.get("default") is None else str(col["default"]),
                is_primary_key=col["name"] in primary_key_columns,
                is_auto_increment=col.get("autoincrement") is True or bool(col.get("identity")),
            )
            for col in columns_metadata
        ]

    def _split_table(self, insp: Inspector, table: str) -> tuple[str | None, str]:
        if "." not in table:
            return None, table
        schema, _, name = table.partition(".")
        try:
            known = {s.lower() for s in insp.get_schema_names()}
        except SQLAlchemyError:
            known = set()
        if schema.lower() in known:
            return schema, name
        return None, table

    # ---- execution ----------------------------------------------------------
    def execute(self, sql: str, *, max_rows: int | None = None) -> QueryRows:
        """Run a read-only statement and return its rows (at most ``max_rows``)."""
        engine = self._require_engine(sql)
        try:
            with engine.connect() as conn:
                options: dict[str, Any] = {"no_parameters": True}
                if engine.dialect.supports_server_side_cursors:
                    options["stream_results"] = True
                result = conn.execution_options(**options).exec_driver_sql(sql)
                cols = list(result.keys())
                mappings = result.mappings()
                raw = mappings.fetchall() if max_rows is None else mappings.fetchmany(max_rows)
                rows = [dict(row) for row in raw]
        except SQLAlchemyError as exc:
            msg = f"Failed to execute query: {exc}"
            raise ExecutionError(msg, sql=sql) from exc

        _logger.info("Query executed successfully, returned %d rows", len(rows))
        return QueryRows(column_names=cols, rows=rows)

    def count(self, sql: str) -> int:
        """Run a COUNT query and return its single value."""
        engine = self._require_engine(sql)
        try:
            with engine.connect() as conn:
                value = (
                    conn.execution_options(no_parameters=True).exec_driver_sql(sql).scalar()
                )
        except SQLAlchemyError as exc:
            msg = f"Failed to execute count query: {exc}"
            raise ExecutionError(msg, sql=sql) from exc
        return int(value or 0)

    def _require_engine(self, sql: str) -> Engine:
        if not self.is_connected or self._engine is None:
            msg = "Not connected to database"
            raise ExecutionError(msg, sql=sql)
        return self._engine


def _apply_statement_timeout(conn: Connection, timeout_sec: int) -> str | None:
    """Bound the validation round-trip; returns the statement that undoes it.

    Best-effort, dialect-specific:
    - PostgreSQL: SET LOCAL statement_timeout, scoped to the open transaction
    - MySQL:      SET SESSION MAX_EXECUTION_TIME, reset to 0 afterwards
    - SQL Server: SET LOCK_TIMEOUT, reset to -1 afterwards
    """
    ms = max(1, int(timeout_sec * 1000))
    name = conn.dialect.name
    try:
        if name == "postgresql":
            conn.execute(sa.text(f"SET LOCAL statement_timeout = {ms}"))
        elif name in {"mysql", "mariadb"}:
            conn.execute(sa.text(f"SET SESSION MAX_EXECUTION_TIME = {ms}"))
            return "SET SESSION MAX_EXECUTION_TIME = 0"
        elif name == "mssql":
            conn.execute(sa.text(f"SET LOCK_TIMEOUT {ms}"))
            return "SET LOCK_TIMEOUT -1"
    except Exception as e:  # noqa: BLE001 - best-effort guard
        _logger.debug("Could not apply statement timeout: %s", e)
    return None


def _reset_statement_timeout(conn: Connection, reset: str | None) -> None:
    # Pooled connections must not keep the validation bound.
    if reset is None:
        return
    try:
        conn.execute(sa.text(reset))
    except Exception as e:  # noqa: BLE001 - best-effort guard
        _logger.debug("Could not reset statement timeout: %s", e)


def _type_name(type_: Any) -> str:
    try:
        return str(type_)
    except Exception:  # noqa: BLE001 - some reflected types cannot compile standalone
        return type(type_).__name__.upper()


def _type_size(type_: Any) -> int:
    for attr in ("length", "precision"):
        value = getattr(type_, attr, None)
        if isinstance(value, int) and value > 0:
            return value
    return 0
