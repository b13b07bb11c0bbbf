from __future__ import annotations

import pytest

from reportsql_mcp.catalog.types import ColumnDescriptor, LogicalKind, classify_type


@pytest.mark.parametrize(
    ("native", "kind"),
    [
        ("DECIMAL(10,2)", LogicalKind.NUMERIC),
        ("NVARCHAR(50)", LogicalKind.TEXT),
        ("DATETIME2", LogicalKind.DATETIME),
        ("BIT", LogicalKind.BOOLEAN),
        ("VARBINARY(MAX)", LogicalKind.BINARY),
        ("bigint", LogicalKind.NUMERIC),
        ("double precision", LogicalKind.NUMERIC),
        ("timestamp with time zone", LogicalKind.DATETIME),
        ("bool", LogicalKind.BOOLEAN),
        ("BOOLEAN", LogicalKind.BOOLEAN),
        ("BLOB", LogicalKind.BINARY),
        ("image", LogicalKind.BINARY),
        ("CLOB", LogicalKind.TEXT),
        ("", LogicalKind.TEXT),
        (None, LogicalKind.TEXT),
    ],
)
def test_classify_type(native: str | None, kind: LogicalKind) -> None:
    assert classify_type(native) is kind


def test_numeric_rule_wins_over_later_rules() -> None:
    # "interval" contains "int"; the first matching rule decides.
    assert classify_type("INTERVAL DAY TO SECOND") is LogicalKind.NUMERIC


def test_descriptor_identity_is_name_and_type() -> None:
    a = ColumnDescriptor("id", "INTEGER", size=4, is_primary_key=True)
    b = ColumnDescriptor("id", "INTEGER", size=10, nullable=False)
    c = ColumnDescriptor("id", "BIGINT")
    assert a == b
    assert hash(a) == hash(b)
    assert a != c
    assert len({a, b, c}) == 2


def test_descriptor_kind_and_display() -> None:
    col = ColumnDescriptor(
        "id", "INTEGER", size=10, nullable=False, is_primary_key=True, is_auto_increment=True
    )
    assert col.is_numeric
    assert col.display_name() == "id (INTEGER(10)) [PK] [AUTO] [NOT NULL]"
    notes = ColumnDescriptor("notes", "TEXT", size=65535)
    assert notes.logical_kind is LogicalKind.TEXT
    assert notes.display_name() == "notes (TEXT)"
