"""Custom exception hierarchy for the report query engine.

These exceptions are raised inside the engine and converted into typed
results at its boundary (``ConnectResult``, empty metadata lists,
``PageResult(success=False)``). Callers of the public operations never see
them escape as uncaught faults.

Exception Categories:
- Connection errors for pool/driver/auth failures at connect time
- Introspection errors for catalog metadata failures
- Compile errors for descriptors without a table
- Execution errors for statements rejected by the database
"""

from __future__ import annotations


class ReportSqlError(Exception):
    """Base exception for report query engine operations."""


class CatalogConnectionError(ReportSqlError):
    """Raised when a catalog cannot establish or validate a pooled connection.

    Typical causes:
    - Invalid or incomplete connection profile
    - Unsupported vendor key
    - Driver missing, authentication rejected, host unreachable
    - Validation round-trip failed or timed out
    """


class IntrospectionError(ReportSqlError):
    """Raised when catalog metadata (schemas, tables, columns) cannot be read."""


class QueryCompileError(ReportSqlError):
    """Raised when a query descriptor cannot be compiled at all (no table name).

    Most malformed input (BETWEEN with the wrong arity, unknown operator
    tokens) degrades to the EQUALS rendering instead of raising.
    """


class ExecutionError(ReportSqlError):
    """Raised when a statement fails at the database or no connection is available."""

    def __init__(self, message: str, *, sql: str | None = None) -> None:
        super().__init__(message)
        self.sql = sql
