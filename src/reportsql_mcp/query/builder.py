"""Dialect-aware SELECT compilation.

A ``QueryDescriptor`` is an immutable description of a report query; the
``compile_*`` functions turn it into SQL text for a ``DialectProfile``.
Compilation is deterministic string assembly with no I/O. Clause order is
fixed: SELECT, FROM, WHERE, GROUP BY, ORDER BY, then vendor limiting.

Values are escaped by doubling single quotes. This is string-level escaping,
not parameter binding, and is not hardened against adversarial input.

Oracle limits rows with ``ROWNUM <= n`` inside WHERE. ROWNUM is assigned
before ORDER BY is applied, so a limited, ordered Oracle query returns the
first n rows found, sorted, and not the first n rows of the sorted set.
Paged Oracle queries (an offset is given, zero included) number the rows of
the ordered inner query instead, so consecutive pages split one sorted set.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from fastmcp.utilities.logging import get_logger

from reportsql_mcp.catalog.types import LogicalKind
from reportsql_mcp.dialects import DialectProfile, LimitStyle, resolve
from reportsql_mcp.exceptions import QueryCompileError

from .predicates import (
    Connector,
    FilterCondition,
    Operator,
    SortSpec,
    order_sort_specs,
    parse_operator,
)

_logger = get_logger(__name__)

# Helper column added by Oracle paging; removed from fetched rows.
ORACLE_ROWNUM_ALIAS = "rnum_"


@dataclass(frozen=True)
class QueryDescriptor:
    """Everything needed to compile one report query.

    Attributes:
        table: Table name, optionally schema-qualified
        columns: Selected columns in output order; empty means ``*``
        filters: WHERE conditions in order
        sort: Sort specs; rendered by priority
        group_by: GROUP BY columns in order
        limit: Maximum rows; ``None`` or ``0`` means unlimited
        offset: Rows to skip; ``None`` means no paging was requested
    """

    table: str
    columns: tuple[str, ...] = ()
    filters: tuple[FilterCondition, ...] = ()
    sort: tuple[SortSpec, ...] = ()
    group_by: tuple[str, ...] = ()
    limit: int | None = None
    offset: int | None = None

    @classmethod
    def create(
        cls,
        table: str,
        columns: Sequence[str] | None = None,
        filters: Sequence[FilterCondition] | None = None,
        sort: Sequence[SortSpec] | None = None,
        group_by: Sequence[str] | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> QueryDescriptor:
        return cls(
            table=table,
            columns=tuple(columns or ()),
            filters=tuple(filters or ()),
            sort=tuple(sort or ()),
            group_by=tuple(group_by or ()),
            limit=limit,
            offset=offset,
        )


# ---- value formatting -------------------------------------------------------
def escape_value(value: str | None) -> str:
    """Double every single quote."""
    if value is None:
        return ""
    return value.replace("'", "''")


def format_value(value: str | None, kind: LogicalKind | None) -> str:
    """Format a comparison literal: bare for numeric columns, quoted otherwise."""
    if value is None or not value.strip():
        return "NULL"
    trimmed = value.strip()
    if kind is LogicalKind.NUMERIC:
        return trimmed
    return f"'{escape_value(trimmed)}'"


def format_in_values(value: str | None) -> str:
    if value is None or not value.strip():
        return "NULL"
    return ", ".join(f"'{escape_value(token.strip())}'" for token in value.split(","))


# ---- predicates -------------------------------------------------------------
_COMPARISON_SQL = {
    Operator.GREATER_THAN: ">",
    Operator.GREATER_OR_EQUAL: ">=",
    Operator.LESS_THAN: "<",
    Operator.LESS_OR_EQUAL: "<=",
}


def render_condition(condition: FilterCondition) -> str:
    """Render a single condition without its connector."""
    column = condition.column_name
    value = condition.value
    op = parse_operator(condition.operator)
    equals = f"{column} = '{escape_value(value)}'"

    if op is Operator.EQUALS:
        return equals
    if op is Operator.NOT_EQUALS:
        return f"{column} != '{escape_value(value)}'"
    if op is Operator.CONTAINS:
        return f"{column} LIKE '%{escape_value(value)}%'"
    if op is Operator.STARTS_WITH:
        return f"{column} LIKE '{escape_value(value)}%'"
    if op is Operator.ENDS_WITH:
        return f"{column} LIKE '%{escape_value(value)}'"
    if op in _COMPARISON_SQL:
        return f"{column} {_COMPARISON_SQL[op]} {format_value(value, condition.column_kind)}"
    if op is Operator.IS_NULL:
        return f"{column} IS NULL"
    if op is Operator.IS_NOT_NULL:
        return f"{column} IS NOT NULL"
    if op is Operator.IN:
        return f"{column} IN ({format_in_values(value)})"
    if op is Operator.NOT_IN:
        return f"{column} NOT IN ({format_in_values(value)})"

    # BETWEEN: anything but exactly two bounds degrades to EQUALS on the raw value.
    bounds = (value or "").split(",")
    if len(bounds) == 2:
        low = format_value(bounds[0].strip(), condition.column_kind)
        high = format_value(bounds[1].strip(), condition.column_kind)
        return f"{column} BETWEEN {low} AND {high}"
    _logger.warning("BETWEEN on %s expects two bounds, got %d", column, len(bounds))
    return equals


def render_where(filters: Sequence[FilterCondition]) -> str:
    """Join rendered conditions with their connectors (without ``WHERE``)."""
    parts: list[str] = []
    for index, condition in enumerate(filters):
        if index > 0:
            parts.append(condition.connector.value)
        parts.append(render_condition(condition))
    return " ".join(parts)


def _has_or(filters: Sequence[FilterCondition]) -> bool:
    return any(c.connector is Connector.OR for c in filters[1:])


# ---- clauses ----------------------------------------------------------------
def _select_list(columns: Sequence[str]) -> str:
    return ", ".join(columns) if columns else "*"


def _order_by(sort: Sequence[SortSpec]) -> str:
    return ", ".join(
        f"{spec.column_name} {spec.direction.value}" for spec in order_sort_specs(list(sort))
    )


def _where_clause(desc: QueryDescriptor, extra: str | None = None) -> str:
    where = render_where(desc.filters)
    if extra:
        if not where:
            where = extra
        elif _has_or(desc.filters):
            where = f"({where}) AND {extra}"
        else:
            where = f"{where} AND {extra}"
    return f" WHERE {where}" if where else ""


def _tail(desc: QueryDescriptor) -> str:
    sql = ""
    if desc.group_by:
        sql += " GROUP BY " + ", ".join(desc.group_by)
    if desc.sort:
        sql += " ORDER BY " + _order_by(desc.sort)
    return sql


def _plain(desc: QueryDescriptor, *, top: int | None = None, rownum: int | None = None) -> str:
    head = f"SELECT TOP {top} " if top is not None else "SELECT "
    rownum_pred = f"ROWNUM <= {rownum}" if rownum is not None else None
    return (
        head
        + _select_list(desc.columns)
        + f" FROM {desc.table}"
        + _where_clause(desc, rownum_pred)
        + _tail(desc)
    )


def _require_table(desc: QueryDescriptor) -> None:
    if not desc.table or not desc.table.strip():
        msg = "A table name is required"
        raise QueryCompileError(msg)


def compile_query(desc: QueryDescriptor, dialect: DialectProfile) -> str:
    """Compile a descriptor into vendor SQL.

    Raises:
        QueryCompileError: If the descriptor has no table name
    """
    _require_table(desc)
    limit = desc.limit if desc.limit and desc.limit > 0 else None
    offset = desc.offset if desc.offset is not None and desc.offset >= 0 else None

    if limit is None:
        sql = _plain(desc)
    elif offset is None:
        sql = _compile_limit(desc, dialect.limit_style, limit)
    else:
        sql = _compile_page(desc, dialect.paging_style, limit, offset)

    _logger.debug("Generated query: %s", sql)
    return sql


def _compile_limit(desc: QueryDescriptor, style: LimitStyle, limit: int) -> str:
    if style is LimitStyle.TOP_CLAUSE:
        return _plain(desc, top=limit)
    if style is LimitStyle.ROWNUM_PREDICATE:
        return _plain(desc, rownum=limit)
    if style is LimitStyle.OFFSET_FETCH:
        return _compile_page(desc, style, limit, 0)
    return _plain(desc) + f" LIMIT {limit}"


def _compile_page(desc: QueryDescriptor, style: LimitStyle, limit: int, offset: int) -> str:
    if style is LimitStyle.OFFSET_FETCH or style is LimitStyle.TOP_CLAUSE:
        sql = _plain(desc)
        if not desc.sort:
            # OFFSET/FETCH needs an ORDER BY; keep the row order explicit.
            sql += " ORDER BY (SELECT NULL)"
        return sql + f" OFFSET {offset} ROWS FETCH NEXT {limit} ROWS ONLY"
    if style is LimitStyle.ROWNUM_PREDICATE:
        # Every page numbers the ordered rows, the first one included.
        inner = _plain(desc)
        return (
            f"SELECT * FROM (SELECT q.*, ROWNUM {ORACLE_ROWNUM_ALIAS} FROM ({inner}) q"
            f" WHERE ROWNUM <= {offset + limit}) WHERE {ORACLE_ROWNUM_ALIAS} > {offset}"
        )
    sql = _plain(desc) + f" LIMIT {limit}"
    if offset > 0:
        sql += f" OFFSET {offset}"
    return sql


def compile_count_query(desc: QueryDescriptor) -> str:
    """``SELECT COUNT(*)`` with the same WHERE clause and nothing else."""
    _require_table(desc)
    sql = f"SELECT COUNT(*) FROM {desc.table}" + _where_clause(desc)
    _logger.debug("Generated count query: %s", sql)
    return sql


class QueryBuilder:
    """Binds a dialect to the pure compile functions.

    Example:
        >>> builder = QueryBuilder("postgresql")
        >>> builder.build("orders", columns=["id"], limit=5)
        'SELECT id FROM orders LIMIT 5'
    """

    def __init__(self, dialect: DialectProfile | str) -> None:
        self.dialect = resolve(dialect) if isinstance(dialect, str) else dialect

    def build(
        self,
        table: str,
        columns: Sequence[str] | None = None,
        filters: Sequence[FilterCondition] | None = None,
        sort: Sequence[SortSpec] | None = None,
        group_by: Sequence[str] | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> str:
        desc = QueryDescriptor.create(table, columns, filters, sort, group_by, limit, offset)
        return compile_query(desc, self.dialect)

    def build_count(
        self, table: str, filters: Sequence[FilterCondition] | None = None
    ) -> str:
        return compile_count_query(QueryDescriptor.create(table, filters=filters))

    def build_sample(self, table: str, max_rows: int) -> str:
        """``SELECT *`` preview limited to ``max_rows`` in vendor syntax."""
        return self.build(table, limit=max_rows)
