"""MCP tool registration for report query building and paged retrieval.

Provides ``build_query``, ``build_count_query``, ``fetch_page`` and
``preview_table``. Filter and sort arguments arrive as ``FilterSpec`` and
``SortSpecModel`` payloads and are converted to the engine's predicate values.
"""

from __future__ import annotations

from typing import Annotated

from fastmcp import Context, FastMCP
from fastmcp.utilities.logging import get_logger
from pydantic import Field

from reportsql_mcp.query.predicates import FilterCondition, SortSpec
from reportsql_mcp.services.session import SessionManager

from .models import BuiltQuery, FilterSpec, PageRequest, PageResult, SortSpecModel

_logger = get_logger(__name__)

FiltersArg = Annotated[
    list[FilterSpec] | None,
    Field(description="WHERE conditions in order; the first connector is ignored"),
]
SortArg = Annotated[
    list[SortSpecModel] | None,
    Field(description="ORDER BY terms; lower priority sorts first"),
]
ColumnsArg = Annotated[
    list[str] | None,
    Field(description="Selected columns in output order; omit for *"),
]
GroupByArg = Annotated[list[str] | None, Field(description="GROUP BY columns in order")]


def _conditions(filters: list[FilterSpec] | None) -> list[FilterCondition]:
    return [f.to_condition() for f in filters or []]


def _sort_specs(sort: list[SortSpecModel] | None) -> list[SortSpec]:
    return [s.to_sort_spec() for s in sort or []]


def register_query_tools(mcp: FastMCP, manager: SessionManager | None = None) -> None:
    """Register report query tools.

    Building uses the vendor of the current or last connection (generic
    LIMIT syntax before any connection); fetching requires a connection.
    """

    def mgr() -> SessionManager:
        return manager or SessionManager.get_instance()

    @mcp.tool
    async def build_query(  # pyright: ignore[reportUnusedFunction]  # noqa: PLR0913
        table: Annotated[str, Field(description="Table name, optionally schema-qualified")],
        columns: ColumnsArg = None,
        filters: FiltersArg = None,
        sort: SortArg = None,
        group_by: GroupByArg = None,
        limit: Annotated[int | None, Field(description="Row limit; omit or 0 for none")] = None,
        offset: Annotated[
            int | None, Field(description="Rows to skip; switches to paging syntax")
        ] = None,
    ) -> BuiltQuery:
        """Compile a SELECT in the connected vendor's syntax without running it."""
        session = mgr()
        executor = session.executor
        sql = await session.run(
            lambda: executor.build_query(
                table, columns, _conditions(filters), _sort_specs(sort), group_by, limit, offset
            )
        )
        return BuiltQuery(
            sql=sql,
            vendor=session.catalog.dialect.vendor_key,
            validation_notes=executor.validation_notes(sql),
        )

    @mcp.tool
    async def build_count_query(  # pyright: ignore[reportUnusedFunction]
        table: Annotated[str, Field(description="Table name, optionally schema-qualified")],
        filters: FiltersArg = None,
    ) -> BuiltQuery:
        """Compile the matching SELECT COUNT(*) (same WHERE clause, no grouping or limit)."""
        session = mgr()
        executor = session.executor
        sql = await session.run(lambda: executor.build_count_query(table, _conditions(filters)))
        return BuiltQuery(
            sql=sql,
            vendor=session.catalog.dialect.vendor_key,
            validation_notes=executor.validation_notes(sql),
        )

    @mcp.tool
    async def fetch_page(  # pyright: ignore[reportUnusedFunction]  # noqa: PLR0913
        ctx: Context,
        table: Annotated[str, Field(description="Table name, optionally schema-qualified")],
        filters: FiltersArg = None,
        sort: SortArg = None,
        page_number: Annotated[int, Field(ge=1, description="1-based page number")] = 1,
        page_size: Annotated[
            int | None, Field(description="Rows per page; capped by server config")
        ] = None,
        columns: ColumnsArg = None,
        group_by: GroupByArg = None,
        *,
        force_load: Annotated[
            bool,
            Field(
                description=(
                    "Load pages even when the match count exceeds the refusal threshold. "
                    "Only set after a refused result and an explicit decision to load anyway."
                )
            ),
        ] = False,
    ) -> PageResult:
        """Count matching rows, then return the whole set, one bounded page, or a refusal.

        A refused result carries total_matching; narrow the filters or retry with
        force_load. When has_more is true, request the next page_number.
        """
        session = mgr()
        request = PageRequest(
            page_number=page_number, page_size=page_size or session.config.page_size
        )
        _logger.info("fetch_page tool: %s page %d", table, page_number)
        result = await session.run(
            lambda: session.executor.fetch_page(
                table,
                _conditions(filters),
                _sort_specs(sort),
                request,
                columns=columns,
                group_by=group_by,
                force_load=force_load,
            )
        )
        if not result.success:
            await ctx.error(result.message)
        return result

    @mcp.tool
    async def preview_table(  # pyright: ignore[reportUnusedFunction]
        table: Annotated[str, Field(description="Table name, optionally schema-qualified")],
        max_rows: Annotated[int, Field(gt=0, le=100, description="Rows to show")] = 10,
    ) -> PageResult:
        """Show the first rows of a table using the vendor's limit syntax."""
        session = mgr()
        return await session.run(lambda: session.executor.preview(table, max_rows))

    _ = (build_query, build_count_query, fetch_page, preview_table)
