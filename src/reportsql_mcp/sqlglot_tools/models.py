"""Typed Pydantic models for sqlglot syntax checks.

These models are intentionally small and focused.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

# Dialects of the supported vendors plus the generic fallback.
Dialect = Literal[
    "sql",
    "postgres",
    "mysql",
    "tsql",
    "oracle",
]


class SqlValidationRequest(BaseModel):
    """Request to validate SQL syntax for a dialect."""

    sql: str = Field(description="SQL string to validate")
    dialect: Dialect = Field(description="Target SQL dialect for parsing")


class SqlValidationResult(BaseModel):
    """Validation result with optional normalized SQL for readability."""

    is_valid: bool = Field(description="True when the SQL parses successfully")
    error_message: str | None = Field(default=None, description="Parse error if invalid")
    normalized_sql: str | None = Field(
        default=None, description="Pretty-printed SQL when parsing succeeds"
    )
    target_dialect: Dialect = Field(description="Dialect used for parsing")


class SqlErrorAssistRequest(BaseModel):
    """Request to assist with a database execution error."""

    sql: str = Field(description="The SQL that failed at execution time")
    error_message: str = Field(description="The database error text returned by the server")
    dialect: Dialect = Field(description="Target database dialect")


class SqlErrorAssistResult(BaseModel):
    """Actionable hints for recovering from SQL execution errors."""

    normalized_sql: str | None = Field(
        default=None, description="Parsed + pretty version to aid debugging"
    )
    likely_causes: list[str] = Field(
        default_factory=list, description="Short, concrete hypotheses for the failure"
    )
    suggested_fixes: list[str] = Field(
        default_factory=list,
        description="Small edits or strategies to try before re-running the query",
    )
    target_dialect: Dialect = Field(description="Dialect assumed for analysis")
