"""Filter model and dialect-aware query compilation."""

from __future__ import annotations

from .builder import (
    QueryBuilder,
    QueryDescriptor,
    compile_count_query,
    compile_query,
    escape_value,
    render_condition,
    render_where,
)
from .predicates import (
    Connector,
    FilterCondition,
    Operator,
    SortDirection,
    SortSpec,
    describe_condition,
    operator_info,
    parse_operator,
)

__all__ = [
    "Connector",
    "FilterCondition",
    "Operator",
    "QueryBuilder",
    "QueryDescriptor",
    "SortDirection",
    "SortSpec",
    "compile_count_query",
    "compile_query",
    "describe_condition",
    "escape_value",
    "operator_info",
    "parse_operator",
    "render_condition",
    "render_where",
]
