"""reportsql-mcp: dialect-aware report queries with guarded paged retrieval.

Compiles table/column/filter/sort selections into vendor SQL for MySQL,
PostgreSQL, SQL Server and Oracle, and serves results through count-first
row-count thresholds. Exposed as a FastMCP server.
"""

from reportsql_mcp.catalog import Catalog, ColumnDescriptor, ConnectionProfile, LogicalKind
from reportsql_mcp.dialects import DialectProfile, resolve
from reportsql_mcp.execute import PagedExecutor, PageRequest, PageResult
from reportsql_mcp.query import FilterCondition, Operator, QueryBuilder, SortSpec
from reportsql_mcp.services import ConfigService, EngineConfig, FetchPhase

__all__ = [  # noqa: RUF022
    # Dialects
    "DialectProfile",
    "resolve",
    # Catalog
    "Catalog",
    "ColumnDescriptor",
    "ConnectionProfile",
    "LogicalKind",
    # Query building
    "FilterCondition",
    "Operator",
    "QueryBuilder",
    "SortSpec",
    # Execution
    "FetchPhase",
    "PageRequest",
    "PageResult",
    "PagedExecutor",
    # Services
    "ConfigService",
    "EngineConfig",
]
