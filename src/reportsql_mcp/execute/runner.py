"""Count-then-fetch execution with row-count safety thresholds.

``PagedExecutor`` is a small, dependency-injected runner that:
- Compiles the report query and its COUNT twin for the connected vendor
- Runs the COUNT first and decides between a full load, a bounded page and a
  refusal based on ``EngineConfig`` thresholds
- Syntax-checks compiled SQL with sqlglot (notes only, never blocking)
- Converts every execution failure into a ``PageResult`` in the FAILED phase

The executor keeps no filter or page state between calls.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace
import math
import time

from fastmcp.utilities.logging import get_logger

from reportsql_mcp.catalog.catalog import Catalog, QueryRows
from reportsql_mcp.catalog.types import LogicalKind
from reportsql_mcp.exceptions import ExecutionError, QueryCompileError
from reportsql_mcp.query.builder import ORACLE_ROWNUM_ALIAS, QueryBuilder
from reportsql_mcp.query.predicates import FilterCondition, SortSpec
from reportsql_mcp.services.config_service import EngineConfig
from reportsql_mcp.services.state import FetchPhase
from reportsql_mcp.sqlglot_tools import (
    SqlErrorAssistRequest,
    SqlglotService,
    SqlValidationRequest,
)

from .models import PageRequest, PageResult

_logger = get_logger(__name__)


class PagedExecutor:
    """Serves report pages from a connected ``Catalog``.

    Args:
        catalog: Connected catalog providing the pool and the dialect
        config: Thresholds; defaults to the catalog's configuration
        glot: sqlglot wrapper used for syntax notes and error assistance
    """

    def __init__(
        self,
        catalog: Catalog,
        config: EngineConfig | None = None,
        *,
        glot: SqlglotService | None = None,
    ) -> None:
        self.catalog = catalog
        self.config = config or catalog.config
        self.glot = glot or SqlglotService()

    @property
    def builder(self) -> QueryBuilder:
        return QueryBuilder(self.catalog.dialect)

    # ---- SQL text -----------------------------------------------------------
    def build_query(
        self,
        table: str,
        columns: Sequence[str] | None = None,
        filters: Sequence[FilterCondition] | None = None,
        sort: Sequence[SortSpec] | None = None,
        group_by: Sequence[str] | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> str:
        """Compile a report query in the connected vendor's syntax."""
        return self.builder.build(
            table, columns, self._usable_filters(table, filters), sort, group_by, limit, offset
        )

    def build_count_query(
        self, table: str, filters: Sequence[FilterCondition] | None = None
    ) -> str:
        return self.builder.build_count(table, self._usable_filters(table, filters))

    def validation_notes(self, sql: str) -> list[str]:
        """sqlglot parse issues for ``sql``; empty when it parses."""
        validation = self.glot.validate(
            SqlValidationRequest(sql=sql, dialect=self.catalog.dialect.sqlglot_dialect)
        )
        if validation.is_valid or not validation.error_message:
            return []
        _logger.warning("SQL validation reported: %s", validation.error_message)
        return [validation.error_message]

    # ---- paging -------------------------------------------------------------
    def fetch_page(
        self,
        table: str,
        filters: Sequence[FilterCondition] | None = None,
        sort: Sequence[SortSpec] | None = None,
        page_request: PageRequest | None = None,
        *,
        columns: Sequence[str] | None = None,
        group_by: Sequence[str] | None = None,
        force_load: bool = False,
    ) -> PageResult:
        """Count matching rows, then serve a full load, a bounded page or a refusal.

        Args:
            table: Table name, optionally schema-qualified
            filters: WHERE conditions; invalid ones are skipped
            sort: ORDER BY specs
            page_request: Requested page; defaults to page 1
            columns: Selected columns; empty selects ``*``
            group_by: GROUP BY columns
            force_load: Serve bounded pages even above the refusal threshold
        """
        request = page_request or PageRequest(page_size=self.config.page_size)
        start = time.perf_counter()

        try:
            usable = self._usable_filters(table, filters)
            count_sql = self.builder.build_count(table, usable)
        except QueryCompileError as exc:
            return self._failed(str(exc), None, start)

        phase = FetchPhase.COUNT_PENDING
        _logger.info("fetch_page: %s (page=%d, phase=%s)", table, request.page_number, phase.value)
        try:
            total = self.catalog.count(count_sql)
        except ExecutionError as exc:
            return self._failed(str(exc), count_sql, start)

        if total == 0:
            return self._ready(
                QueryRows(), total=0, page_number=1, page_size=0, sql=count_sql, start=start
            )

        if total > self.config.refusal_threshold and not force_load:
            _logger.warning(
                "Refusing to load %d rows from %s (threshold %d)",
                total,
                table,
                self.config.refusal_threshold,
            )
            return PageResult(
                success=True,
                message=(
                    f"{total} rows match; narrow the filters or load anyway "
                    f"(threshold {self.config.refusal_threshold})"
                ),
                phase=FetchPhase.REFUSED,
                total_matching=total,
                page_number=request.page_number,
                sql=count_sql,
                elapsed_ms=_elapsed_ms(start),
            )

        if total <= self.config.full_load_threshold:
            sql = self.builder.build(table, columns, usable, sort, group_by)
            page_number, page_size, max_rows = 1, total, total
        else:
            page_size = min(request.page_size, self.config.page_size)
            page_number = request.page_number
            offset = (page_number - 1) * page_size
            if offset >= total:
                return self._ready(
                    QueryRows(),
                    total=total,
                    page_number=page_number,
                    page_size=page_size,
                    sql=count_sql,
                    start=start,
                    message=f"Page {page_number} is past the last page",
                )
            sql = self.builder.build(
                table, columns, usable, sort, group_by, limit=page_size, offset=offset
            )
            max_rows = page_size

        notes = self.validation_notes(sql)
        try:
            fetched = self.catalog.execute(sql, max_rows=max_rows)
        except ExecutionError as exc:
            return self._failed(str(exc), sql, start, notes=notes)

        return self._ready(
            _strip_helper_columns(fetched, sql),
            total=total,
            page_number=page_number,
            page_size=page_size,
            sql=sql,
            start=start,
            notes=notes,
        )

    def preview(self, table: str, max_rows: int = 10) -> PageResult:
        """``SELECT *`` preview of at most ``max_rows`` rows, without counting."""
        start = time.perf_counter()
        try:
            sql = self.builder.build_sample(table, max_rows)
        except QueryCompileError as exc:
            return self._failed(str(exc), None, start)
        try:
            fetched = self.catalog.execute(sql, max_rows=max_rows)
        except ExecutionError as exc:
            return self._failed(str(exc), sql, start)
        return PageResult(
            success=True,
            message=f"Preview of {table}",
            phase=FetchPhase.ROWS_READY,
            column_names=fetched.column_names,
            rows=fetched.rows,
            total_matching=len(fetched.rows),
            rows_returned=len(fetched.rows),
            page_size=max_rows,
            sql=sql,
            elapsed_ms=_elapsed_ms(start),
        )

    # ---- helpers ------------------------------------------------------------
    def _usable_filters(
        self, table: str, filters: Sequence[FilterCondition] | None
    ) -> list[FilterCondition]:
        """Drop invalid conditions and fill missing column kinds from the catalog."""
        usable: list[FilterCondition] = []
        for condition in filters or ():
            if condition.is_valid():
                usable.append(condition)
            else:
                _logger.warning("Skipping incomplete filter on %r", condition.column_name)

        if not any(c.column_kind is None for c in usable) or not self.catalog.is_connected:
            return usable

        kinds = {col.name.lower(): col.logical_kind for col in self.catalog.list_columns(table)}
        return [
            c
            if c.column_kind is not None or c.column_name.lower() not in kinds
            else _with_kind(c, kinds[c.column_name.lower()])
            for c in usable
        ]

    def _ready(
        self,
        fetched: QueryRows,
        *,
        total: int,
        page_number: int,
        page_size: int,
        sql: str,
        start: float,
        notes: list[str] | None = None,
        message: str | None = None,
    ) -> PageResult:
        returned = len(fetched.rows)
        shown = (page_number - 1) * page_size + returned
        has_more = page_size > 0 and shown < total
        pages = math.ceil(total / page_size) if page_size else 0
        elapsed = _elapsed_ms(start)
        _logger.info(
            "Page ready (elapsed_ms=%.1f, total=%d, rows_returned=%d, page=%d/%d)",
            elapsed,
            total,
            returned,
            page_number,
            pages,
        )
        return PageResult(
            success=True,
            message=message or f"{returned} of {total} rows (page {page_number} of {max(pages, 1)})",
            phase=FetchPhase.ROWS_READY,
            column_names=fetched.column_names,
            rows=fetched.rows,
            total_matching=total,
            rows_returned=returned,
            page_number=page_number,
            page_size=page_size,
            has_more=has_more,
            sql=sql,
            elapsed_ms=elapsed,
            validation_notes=notes or [],
        )

    def _failed(
        self, message: str, sql: str | None, start: float, *, notes: list[str] | None = None
    ) -> PageResult:
        _logger.warning("Fetch failed: %s", message)
        assist: list[str] = []
        if sql:
            helpres = self.glot.assist_error(
                SqlErrorAssistRequest(
                    sql=sql, error_message=message, dialect=self.catalog.dialect.sqlglot_dialect
                )
            )
            assist.extend([f"Cause: {c}" for c in helpres.likely_causes])
            assist.extend([f"Fix: {f}" for f in helpres.suggested_fixes])
        return PageResult(
            success=False,
            message=message,
            phase=FetchPhase.FAILED,
            sql=sql,
            elapsed_ms=_elapsed_ms(start),
            validation_notes=notes or [],
            assist_notes=assist or None,
        )


def _with_kind(condition: FilterCondition, kind: LogicalKind) -> FilterCondition:
    return replace(condition, column_kind=kind)


def _strip_helper_columns(fetched: QueryRows, sql: str) -> QueryRows:
    """Remove the Oracle paging helper column, which the wrapper appends last."""
    if f"ROWNUM {ORACLE_ROWNUM_ALIAS} FROM (" not in sql or not fetched.column_names:
        return fetched
    helper = fetched.column_names[-1]
    if helper.lower() != ORACLE_ROWNUM_ALIAS:
        return fetched
    names = fetched.column_names[:-1]
    rows = [{k: v for k, v in row.items() if k != helper} for row in fetched.rows]
    return QueryRows(column_names=names, rows=rows)


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000.0
