"""MCP tool registration for connection and catalog introspection.

Exposes a ``register_catalog_tools`` function that attaches tools to a
FastMCP instance while delegating the work to the ``SessionManager``.
"""

from __future__ import annotations

from typing import Annotated

from fastmcp import Context, FastMCP
from fastmcp.utilities.logging import get_logger
from pydantic import Field

from reportsql_mcp.dialects import resolve, supported_vendors
from reportsql_mcp.services.session import SessionManager

from .models import ColumnInfo, ConnectionStatus, ProfileSummary
from .profile import ConnectionProfile

_logger = get_logger(__name__)


def _status(mgr: SessionManager, message: str) -> ConnectionStatus:
    profile = mgr.catalog.profile if mgr.catalog.is_connected else None
    return ConnectionStatus(
        connected=mgr.catalog.is_connected,
        message=message,
        profile=profile.display_name() if profile else None,
        vendor=profile.vendor_key if profile else None,
    )


def _merge_profile(  # noqa: PLR0913
    session: SessionManager,
    profile_name: str,
    vendor: str | None,
    host: str | None,
    port: int | None,
    database: str | None,
    username: str | None,
    password: str | None,
) -> ConnectionProfile:
    """Saved profile or template named ``profile_name``, overridden by explicit fields."""
    base = session.find_profile(profile_name) if profile_name else None
    vendor_key = (vendor or (base.vendor_key if base else "")).lower()
    chosen_port = port if port is not None else (base.port if base else 0)
    if chosen_port <= 0:
        chosen_port = resolve(vendor_key).default_port
    return ConnectionProfile(
        name=profile_name or (base.name if base else "") or f"{vendor_key}:{host}",
        vendor_key=vendor_key,
        host=host or (base.host if base else ""),
        port=chosen_port,
        database=database or (base.database if base else ""),
        username=username or (base.username if base else ""),
        password_token=password if password is not None else (
            base.password_token if base else None
        ),
    )


def register_catalog_tools(mcp: FastMCP, manager: SessionManager | None = None) -> None:
    """Register connection and introspection tools."""

    def mgr() -> SessionManager:
        return manager or SessionManager.get_instance()

    @mcp.tool
    async def list_profiles() -> list[ProfileSummary]:  # pyright: ignore[reportUnusedFunction]
        """List saved connection profiles (passwords are never returned)."""
        profiles = await mgr().run(mgr().store.load_profiles)
        return [ProfileSummary.from_profile(p) for p in profiles]

    @mcp.tool
    async def connect_database(  # pyright: ignore[reportUnusedFunction]  # noqa: PLR0913
        ctx: Context,
        profile_name: Annotated[
            str,
            Field(description="Saved profile or template name; other fields override it"),
        ] = "",
        vendor: Annotated[
            str | None,
            Field(description=f"Vendor key: one of {', '.join(supported_vendors())}"),
        ] = None,
        host: Annotated[str | None, Field(description="Database host")] = None,
        port: Annotated[int | None, Field(description="TCP port; vendor default when 0")] = None,
        database: Annotated[str | None, Field(description="Database or service name")] = None,
        username: Annotated[str | None, Field(description="Login name")] = None,
        password: Annotated[str | None, Field(description="Login password")] = None,
        *,
        save: Annotated[
            bool, Field(description="Persist the profile (password encrypted) on success")
        ] = False,
    ) -> ConnectionStatus:
        """Open and validate a pooled connection, replacing any current one."""
        session = mgr()
        profile = _merge_profile(
            session, profile_name, vendor, host, port, database, username, password
        )
        result = await session.connect(profile)
        if not result.ok:
            await ctx.error(result.message)
            return _status(session, result.message)
        if save:
            await session.run(lambda: session.save_profile(profile))
        return _status(session, result.message)

    @mcp.tool
    async def test_connection(  # pyright: ignore[reportUnusedFunction]  # noqa: PLR0913
        profile_name: Annotated[
            str,
            Field(description="Saved profile or template name; other fields override it"),
        ] = "",
        vendor: Annotated[str | None, Field(description="Vendor key")] = None,
        host: Annotated[str | None, Field(description="Database host")] = None,
        port: Annotated[int | None, Field(description="TCP port; vendor default when 0")] = None,
        database: Annotated[str | None, Field(description="Database or service name")] = None,
        username: Annotated[str | None, Field(description="Login name")] = None,
        password: Annotated[str | None, Field(description="Login password")] = None,
    ) -> ConnectionStatus:
        """Validate connection settings without replacing the current connection."""
        session = mgr()
        profile = _merge_profile(
            session, profile_name, vendor, host, port, database, username, password
        )
        _logger.info("Testing connection %s", profile.display_name())
        result = await session.run(lambda: session.catalog.test_connection(profile))
        return _status(session, result.message)

    @mcp.tool
    async def disconnect_database() -> ConnectionStatus:  # pyright: ignore[reportUnusedFunction]
        """Close the current connection pool. Safe to call when not connected."""
        await mgr().disconnect()
        return _status(mgr(), "Disconnected")

    @mcp.tool
    async def list_tables(ctx: Context) -> list[str]:  # pyright: ignore[reportUnusedFunction]
        """User tables of the connected database, sorted; system objects excluded."""
        session = mgr()
        if not session.catalog.is_connected:
            await ctx.warning("Not connected; call connect_database first")
            return []
        return await session.run(session.catalog.list_tables)

    @mcp.tool
    async def list_columns(  # pyright: ignore[reportUnusedFunction]
        ctx: Context,
        table: Annotated[str, Field(description="Table name, optionally schema-qualified")],
    ) -> list[ColumnInfo]:
        """Columns of a table in catalog order. An empty list means unknown."""
        session = mgr()
        if not session.catalog.is_connected:
            await ctx.warning("Not connected; call connect_database first")
            return []
        columns = await session.run(lambda: session.catalog.list_columns(table))
        return [ColumnInfo.from_descriptor(c) for c in columns]

    _ = (
        list_profiles,
        connect_database,
        test_connection,
        disconnect_database,
        list_tables,
        list_columns,
    )
