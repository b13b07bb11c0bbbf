"""FastMCP server implementation for reportsql-mcp."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import dotenv
from fastmcp import FastMCP
from fastmcp.utilities.logging import get_logger
from starlette.requests import Request
from starlette.responses import JSONResponse

from reportsql_mcp.catalog.mcp_tools import register_catalog_tools
from reportsql_mcp.execute.mcp_tools import register_query_tools
from reportsql_mcp.services.session import SessionManager

# Load environment variables
dotenv.load_dotenv()

# Configure a module-level logger for local server logs.
_logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(_mcp_instance: FastMCP) -> AsyncGenerator[None]:
    """Release the connection pool on shutdown."""
    try:
        yield
    finally:
        _logger.info("Closing report session during lifespan shutdown")
        await SessionManager.get_instance().disconnect()


mcp = FastMCP(
    instructions=(
        "Report query server for MySQL, PostgreSQL, SQL Server and Oracle. Connect with "
        "connect_database, explore with list_tables and list_columns, then build queries "
        "or fetch guarded pages of results with fetch_page."
    ),
    lifespan=lifespan,
)

# -- Tool Registration -------------------------------------------------------
register_catalog_tools(mcp)
register_query_tools(mcp)


# -- Health Check ----------------------------------------------------------
@mcp.custom_route("/health", methods=["GET"])
async def health_check(_request: Request) -> JSONResponse:
    connected = SessionManager.get_instance().catalog.is_connected
    return JSONResponse({"status": "healthy", "service": "mcp-server", "connected": connected})
