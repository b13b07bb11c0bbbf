"""Column metadata and logical type classification.

Models:
- LogicalKind: Coarse semantic class of a native column type
- ColumnDescriptor: Immutable column metadata read from the catalog
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Final


class LogicalKind(Enum):
    """Coarse classification of a native column type used for literal formatting."""

    NUMERIC = "numeric"
    TEXT = "text"
    DATETIME = "datetime"
    BOOLEAN = "boolean"
    BINARY = "binary"


# Ordered: the first matching rule wins ("int" also matches bigint/smallint).
NUMERIC_TYPE_HINTS: Final[tuple[str, ...]] = ("int", "decimal", "numeric", "float", "double", "real")
DATETIME_TYPE_HINTS: Final[tuple[str, ...]] = ("date", "time", "timestamp")
BOOLEAN_TYPE_HINTS: Final[tuple[str, ...]] = ("bit", "boolean")
BINARY_TYPE_HINTS: Final[tuple[str, ...]] = ("blob", "binary", "varbinary", "image")


def classify_type(native_type_name: str | None) -> LogicalKind:
    """Classify a native type name by case-insensitive substring rules.

    Example:
        >>> classify_type("DECIMAL(10,2)")
        <LogicalKind.NUMERIC: 'numeric'>
        >>> classify_type("VARBINARY(MAX)")
        <LogicalKind.BINARY: 'binary'>
    """
    lowered = (native_type_name or "").lower()
    if any(hint in lowered for hint in NUMERIC_TYPE_HINTS):
        return LogicalKind.NUMERIC
    if any(hint in lowered for hint in DATETIME_TYPE_HINTS):
        return LogicalKind.DATETIME
    if lowered == "bool" or any(hint in lowered for hint in BOOLEAN_TYPE_HINTS):
        return LogicalKind.BOOLEAN
    if any(hint in lowered for hint in BINARY_TYPE_HINTS):
        return LogicalKind.BINARY
    return LogicalKind.TEXT


@dataclass(frozen=True)
class ColumnDescriptor:
    """Column metadata as reported by the database catalog.

    Identity is ``(name, native_type_name)``; the remaining attributes do not
    take part in equality or hashing.

    Attributes:
        name: Column name as defined in the database
        native_type_name: Vendor type name, e.g. "NVARCHAR(50)"
        size: Declared length or precision (0 when not applicable)
        nullable: Whether the column accepts NULL values
        default_value: Column default expression, if any
        is_primary_key: True if this column is part of the primary key
        is_auto_increment: True if the database generates the value
    """

    name: str
    native_type_name: str
    size: int = field(default=0, compare=False)
    nullable: bool = field(default=True, compare=False)
    default_value: str | None = field(default=None, compare=False)
    is_primary_key: bool = field(default=False, compare=False)
    is_auto_increment: bool = field(default=False, compare=False)

    @property
    def logical_kind(self) -> LogicalKind:
        return classify_type(self.native_type_name)

    @property
    def is_numeric(self) -> bool:
        return self.logical_kind is LogicalKind.NUMERIC

    def display_name(self) -> str:
        """Render ``name (TYPE(size)) [PK] [AUTO] [NOT NULL]`` for pickers."""
        parts = [self.name, " (", self.native_type_name]
        if self.size > 0 and "text" not in self.native_type_name.lower():
            parts.append(f"({self.size})")
        parts.append(")")
        if self.is_primary_key:
            parts.append(" [PK]")
        if self.is_auto_increment:
            parts.append(" [AUTO]")
        if not self.nullable:
            parts.append(" [NOT NULL]")
        return "".join(parts)
