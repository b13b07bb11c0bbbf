"""Sqlglot service layer providing typed, pure operations.

All methods are side-effect-free and designed for unit testing. The engine
uses them to syntax-check compiled SQL per vendor before execution and to
attach recovery hints to execution failures; neither path blocks a query.
"""

from __future__ import annotations

from collections.abc import Iterable
from functools import lru_cache

import sqlglot

from .models import (
    Dialect,
    SqlErrorAssistRequest,
    SqlErrorAssistResult,
    SqlValidationRequest,
    SqlValidationResult,
)


def _sqlglot_name(dialect: Dialect) -> str | None:
    # "sql" is the generic dialect; sqlglot spells it as no dialect at all.
    return None if dialect == "sql" else dialect


@lru_cache(maxsize=256)
def _cached_parse(sql: str, dialect: Dialect) -> sqlglot.Expression | None:
    """Small cache for parse results; page requests repeat the same SQL shape."""
    return sqlglot.parse_one(sql, dialect=_sqlglot_name(dialect))


class SqlglotService:
    """Typed wrapper around sqlglot functionality.

    Methods avoid raising on malformed SQL and instead return structured
    results.
    """

    # ---- validation -----------------------------------------------------
    def validate(self, req: SqlValidationRequest) -> SqlValidationResult:
        """Parse and validate SQL, returning pretty SQL on success."""
        try:
            parsed = _cached_parse(req.sql, req.dialect)
            if parsed is None:
                return SqlValidationResult(
                    is_valid=False,
                    error_message="Failed to parse SQL query",
                    normalized_sql=None,
                    target_dialect=req.dialect,
                )
            return SqlValidationResult(
                is_valid=True,
                error_message=None,
                normalized_sql=parsed.sql(dialect=_sqlglot_name(req.dialect), pretty=True),
                target_dialect=req.dialect,
            )
        except Exception as e:  # noqa: BLE001 - returning typed error
            return SqlValidationResult(
                is_valid=False,
                error_message=f"SQL parsing error: {e}",
                normalized_sql=None,
                target_dialect=req.dialect,
            )

    # ---- error assist ---------------------------------------------------
    def assist_error(self, req: SqlErrorAssistRequest) -> SqlErrorAssistResult:
        """Heuristic assistance for execution-time SQL errors.

        This does not execute SQL; it parses and inspects the error string
        to offer concrete next steps.
        """
        normalized: str | None = None
        likely: list[str] = []
        fixes: list[str] = []

        val = self.validate(SqlValidationRequest(sql=req.sql, dialect=req.dialect))
        if val.is_valid and val.normalized_sql is not None:
            normalized = val.normalized_sql

        emsg = req.error_message.lower()

        def add_if(cond: bool, items: Iterable[str]) -> None:  # noqa: FBT001
            if cond:
                likely.extend(items)

        add_if(
            "syntax error" in emsg or "incorrect syntax" in emsg or "ora-00933" in emsg,
            ["SQL syntax near reported token is invalid for this dialect"],
        )
        add_if(
            "no such table" in emsg
            or "does not exist" in emsg
            or "invalid object name" in emsg
            or "ora-00942" in emsg,
            ["Referenced table name may be wrong or not visible to this user"],
        )
        add_if(
            "no such column" in emsg
            or "unknown column" in emsg
            or "invalid column name" in emsg
            or "ora-00904" in emsg,
            ["A selected, filtered or sorted column is misspelled or not present"],
        )
        add_if(
            "conversion failed" in emsg
            or "invalid input syntax" in emsg
            or "ora-01722" in emsg,
            ["Filter value does not match the column type"],
        )

        lowered_sql = req.sql.lower()
        if " top " in f" {lowered_sql}" and req.dialect in {"postgres", "mysql"}:
            fixes.append("Replace T-SQL TOP with LIMIT")
        if " limit " in lowered_sql and req.dialect in {"tsql", "oracle"}:
            fixes.append("Use the vendor's own row limiting instead of LIMIT")
        if "rownum" in lowered_sql and "order by" in lowered_sql:
            fixes.append("ROWNUM is assigned before ORDER BY; page through an ordered subquery")

        return SqlErrorAssistResult(
            normalized_sql=normalized,
            likely_causes=sorted(set(likely)),
            suggested_fixes=sorted(set(fixes)),
            target_dialect=req.dialect,
        )
