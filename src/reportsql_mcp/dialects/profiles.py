"""Static per-vendor dialect facts.

A ``DialectProfile`` bundles everything the engine needs to know about a
database vendor without touching the database: the SQLAlchemy driver name,
the connection URL template, how rows are limited and paged, which catalog
names belong to the system, and which sqlglot dialect parses its SQL.

The profile table is read-only process-wide state and safe for concurrent
reads.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Final

from reportsql_mcp.sqlglot_tools.models import Dialect


class LimitStyle(Enum):
    """How a vendor restricts the number of returned rows."""

    TRAILING_LIMIT = "trailing_limit"  # ... LIMIT n [OFFSET x]
    TOP_CLAUSE = "top_clause"  # SELECT TOP n ...
    OFFSET_FETCH = "offset_fetch"  # ... OFFSET x ROWS FETCH NEXT n ROWS ONLY
    ROWNUM_PREDICATE = "rownum_predicate"  # ... WHERE ROWNUM <= n


@dataclass(frozen=True)
class DialectProfile:
    """Immutable description of one database vendor.

    Attributes:
        vendor_key: Lower-case vendor key ("mysql", "postgresql", "sqlserver", "oracle")
        driver_id: SQLAlchemy driver name used to build engines
        url_template: URL with {host}, {port} and {database} placeholders
        limit_style: Style used for a plain row limit
        paging_style: Style used when an offset is requested
        system_prefixes: Lower-case name prefixes treated as system objects
        system_names: Lower-case exact names treated as system objects
        default_port: Vendor default TCP port (0 when unknown)
        validation_query: Lightweight round-trip used to validate connections
        sqlglot_dialect: Dialect name used for syntax checks
        list_all_schemas: List tables of every user schema, not just the default one
    """

    vendor_key: str
    driver_id: str
    url_template: str
    limit_style: LimitStyle
    paging_style: LimitStyle
    system_prefixes: frozenset[str] = field(default_factory=frozenset)
    system_names: frozenset[str] = field(default_factory=frozenset)
    default_port: int = 0
    validation_query: str = "SELECT 1"
    sqlglot_dialect: Dialect = "sql"
    list_all_schemas: bool = True

    @property
    def is_resolved(self) -> bool:
        """True when the profile describes a supported vendor."""
        return bool(self.driver_id and self.url_template)

    def is_system_object(self, name: str) -> bool:
        """Return True when a schema or table name belongs to the system catalog."""
        lowered = name.lower()
        if lowered in self.system_names:
            return True
        return any(lowered.startswith(prefix) for prefix in self.system_prefixes)

    def format_url(self, host: str, port: int, database: str) -> str:
        """Substitute connection placeholders into the URL template."""
        return (
            self.url_template.replace("{host}", host)
            .replace("{port}", str(port))
            .replace("{database}", database)
        )


_PROFILES: Final[dict[str, DialectProfile]] = {
    "mysql": DialectProfile(
        vendor_key="mysql",
        driver_id="mysql+pymysql",
        url_template="mysql+pymysql://{host}:{port}/{database}?charset=utf8mb4",
        limit_style=LimitStyle.TRAILING_LIMIT,
        paging_style=LimitStyle.TRAILING_LIMIT,
        system_prefixes=frozenset(
            {"information_schema", "performance_schema", "mysql", "sys"}
        ),
        default_port=3306,
        sqlglot_dialect="mysql",
        list_all_schemas=False,
    ),
    "postgresql": DialectProfile(
        vendor_key="postgresql",
        driver_id="postgresql+psycopg2",
        url_template="postgresql+psycopg2://{host}:{port}/{database}",
        limit_style=LimitStyle.TRAILING_LIMIT,
        paging_style=LimitStyle.TRAILING_LIMIT,
        system_prefixes=frozenset({"information_schema", "pg_"}),
        default_port=5432,
        sqlglot_dialect="postgres",
    ),
    "sqlserver": DialectProfile(
        vendor_key="sqlserver",
        driver_id="mssql+pyodbc",
        url_template=(
            "mssql+pyodbc://{host}:{port}/{database}"
            "?driver=ODBC+Driver+18+for+SQL+Server&TrustServerCertificate=yes"
        ),
        limit_style=LimitStyle.TOP_CLAUSE,
        paging_style=LimitStyle.OFFSET_FETCH,
        system_prefixes=frozenset(
            {
                "sys",
                "information_schema",
                "msreplication",
                "mspeer",
                "msdistribution",
                "mssubscription",
                "msmerge",
                "mssnapshot",
                "mslog",
                "msdb",
                "master",
                "model",
                "tempdb",
                "trace_xe",
                "fn_",
                "dm_",
            }
        ),
        system_names=frozenset(
            {
                "dtproperties",
                "spt_fallback_db",
                "spt_fallback_dev",
                "spt_fallback_usg",
                "spt_monitor",
                "msreplication_options",
            }
        ),
        default_port=1433,
        sqlglot_dialect="tsql",
    ),
    "oracle": DialectProfile(
        vendor_key="oracle",
        driver_id="oracle+oracledb",
        url_template="oracle+oracledb://{host}:{port}/?service_name={database}",
        limit_style=LimitStyle.ROWNUM_PREDICATE,
        paging_style=LimitStyle.ROWNUM_PREDICATE,
        system_prefixes=frozenset({"sys", "dba_", "all_", "user_"}),
        default_port=1521,
        validation_query="SELECT 1 FROM DUAL",
        sqlglot_dialect="oracle",
        list_all_schemas=False,
    ),
}


def empty_profile(vendor_key: str = "") -> DialectProfile:
    """Return the unresolved profile used for unknown vendors.

    Rendering falls back to a trailing LIMIT, but ``is_resolved`` is False so
    callers reject the profile before connecting.
    """
    return DialectProfile(
        vendor_key=vendor_key.strip().lower(),
        driver_id="",
        url_template="",
        limit_style=LimitStyle.TRAILING_LIMIT,
        paging_style=LimitStyle.TRAILING_LIMIT,
    )


def resolve(vendor_key: str | None) -> DialectProfile:
    """Look up the profile for a vendor key (case-insensitive)."""
    key = (vendor_key or "").strip().lower()
    return _PROFILES.get(key) or empty_profile(key)


def supported_vendors() -> list[str]:
    """Vendor keys with a resolved profile, in a stable order."""
    return list(_PROFILES)
