"""Models for the paged report execution tools.

``PageRequest`` and ``PageResult`` are the executor's typed input and output.
``FilterSpec`` and ``SortSpecModel`` are the wire shapes accepted by the MCP
tools and converted into the engine's frozen predicate values.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from reportsql_mcp.catalog.types import LogicalKind
from reportsql_mcp.query.predicates import (
    FilterCondition,
    SortSpec,
    parse_connector,
    parse_direction,
)
from reportsql_mcp.services.state import FetchPhase


class PageRequest(BaseModel):
    """1-based page selection."""

    model_config = ConfigDict(frozen=True)

    page_number: int = Field(default=1, ge=1, description="1-based page number")
    page_size: int = Field(default=2000, gt=0, description="Rows per page (capped by config)")

    @property
    def offset(self) -> int:
        return (self.page_number - 1) * self.page_size


class PageResult(BaseModel):
    """Structured outcome of one count-then-fetch round."""

    model_config = ConfigDict(ser_json_bytes="base64")

    success: bool = Field(description="False only when the fetch failed")
    message: str = Field(default="", description="Human-readable outcome summary")
    phase: FetchPhase = Field(description="Terminal phase: rows_ready, refused or failed")
    column_names: list[str] = Field(default_factory=list, description="Ordered result columns")
    rows: list[dict[str, Any]] = Field(default_factory=list, description="Ordered row maps")
    total_matching: int = Field(default=0, description="Row count reported by the COUNT query")
    rows_returned: int = Field(default=0, description="Number of rows in this page")
    page_number: int = Field(default=1, description="Page served")
    page_size: int = Field(default=0, description="Effective page size")
    has_more: bool = Field(default=False, description="True when later pages exist")
    sql: str | None = Field(default=None, description="Last SQL sent to the database")
    elapsed_ms: float = Field(default=0.0, description="Wall time for count and fetch")
    validation_notes: list[str] = Field(
        default_factory=list, description="sqlglot syntax notes for the compiled SQL"
    )
    assist_notes: list[str] | None = Field(
        default=None, description="Optional guidance when an error occurred"
    )
    timestamp: str = Field(
        default_factory=lambda: datetime.now(UTC).isoformat(),
        description="UTC ISO8601 timestamp of completion",
    )


class FilterSpec(BaseModel):
    """Wire form of a WHERE condition."""

    column: str = Field(description="Column name")
    operator: str = Field(
        default="EQUALS",
        description=(
            "Operator name (EQUALS, NOT_EQUALS, CONTAINS, STARTS_WITH, ENDS_WITH, GREATER_THAN, "
            "GREATER_OR_EQUAL, LESS_THAN, LESS_OR_EQUAL, IS_NULL, IS_NOT_NULL, IN, NOT_IN, "
            "BETWEEN) or SQL symbol (=, !=, <>, LIKE, >, >=, <, <=)"
        ),
    )
    value: str = Field(
        default="",
        description="Literal value; comma-separated for IN/NOT_IN and 'low,high' for BETWEEN",
    )
    connector: str = Field(default="AND", description="AND or OR; ignored on the first filter")
    kind: LogicalKind | None = Field(
        default=None,
        description="Column kind; looked up from the catalog when omitted",
    )

    def to_condition(self) -> FilterCondition:
        return FilterCondition(
            column_name=self.column,
            operator=self.operator,
            value=self.value,
            column_kind=self.kind,
            connector=parse_connector(self.connector),
        )


class SortSpecModel(BaseModel):
    """Wire form of an ORDER BY term."""

    column: str = Field(description="Column name")
    direction: str = Field(default="ASC", description="ASC or DESC")
    priority: int = Field(default=0, description="Lower sorts first; ties keep input order")

    def to_sort_spec(self) -> SortSpec:
        return SortSpec(
            column_name=self.column,
            direction=parse_direction(self.direction),
            priority=self.priority,
        )


class BuiltQuery(BaseModel):
    """Compiled SQL returned by the build tools."""

    sql: str = Field(description="SQL text in the connected vendor's syntax")
    vendor: str = Field(description="Vendor key used for rendering")
    validation_notes: list[str] = Field(
        default_factory=list, description="sqlglot syntax notes for the compiled SQL"
    )
