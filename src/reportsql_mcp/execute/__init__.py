"""Paged report execution.

Exports typed page models and the executor. The FastMCP registration helper
lives in ``reportsql_mcp.execute.mcp_tools``.
"""

from __future__ import annotations

from .models import BuiltQuery, FilterSpec, PageRequest, PageResult, SortSpecModel
from .runner import PagedExecutor

__all__ = [
    "BuiltQuery",
    "FilterSpec",
    "PageRequest",
    "PageResult",
    "PagedExecutor",
    "SortSpecModel",
]
