from __future__ import annotations

import pytest

from reportsql_mcp.dialects import LimitStyle, resolve, supported_vendors


def test_supported_vendors_resolve() -> None:
    assert supported_vendors() == ["mysql", "postgresql", "sqlserver", "oracle"]
    for vendor in supported_vendors():
        profile = resolve(vendor)
        assert profile.is_resolved
        assert profile.vendor_key == vendor
        assert profile.default_port > 0


def test_resolve_is_case_insensitive_and_shared() -> None:
    assert resolve("PostgreSQL") is resolve("postgresql")
    assert resolve(" SQLServer ") is resolve("sqlserver")


@pytest.mark.parametrize("key", ["db2", "", None])
def test_unknown_vendor_is_empty_profile(key: str | None) -> None:
    profile = resolve(key)
    assert not profile.is_resolved
    assert profile.driver_id == ""
    assert profile.url_template == ""
    assert profile.limit_style is LimitStyle.TRAILING_LIMIT


def test_limit_styles() -> None:
    assert resolve("mysql").limit_style is LimitStyle.TRAILING_LIMIT
    assert resolve("sqlserver").limit_style is LimitStyle.TOP_CLAUSE
    assert resolve("sqlserver").paging_style is LimitStyle.OFFSET_FETCH
    assert resolve("oracle").limit_style is LimitStyle.ROWNUM_PREDICATE


def test_format_url() -> None:
    url = resolve("postgresql").format_url("db.local", 5433, "sales")
    assert url == "postgresql+psycopg2://db.local:5433/sales"
    oracle = resolve("oracle").format_url("ora", 1521, "ORCLPDB1")
    assert oracle == "oracle+oracledb://ora:1521/?service_name=ORCLPDB1"


@pytest.mark.parametrize(
    ("vendor", "name", "expected"),
    [
        ("mysql", "performance_schema", True),
        ("mysql", "mysql", True),
        ("mysql", "customers", False),
        ("postgresql", "pg_catalog", True),
        ("postgresql", "Information_Schema", True),
        ("postgresql", "orders", False),
        ("sqlserver", "sys.foo", True),
        ("sqlserver", "MSreplication_options", True),
        ("sqlserver", "spt_monitor", True),
        ("sqlserver", "dtproperties", True),
        ("sqlserver", "Customers", False),
        ("oracle", "DBA_USERS", True),
        ("oracle", "user_tables", True),
        ("oracle", "EMPLOYEES", False),
    ],
)
def test_system_object_rules(vendor: str, name: str, expected: bool) -> None:  # noqa: FBT001
    assert resolve(vendor).is_system_object(name) is expected


def test_validation_queries() -> None:
    assert resolve("oracle").validation_query == "SELECT 1 FROM DUAL"
    assert resolve("postgresql").validation_query == "SELECT 1"
