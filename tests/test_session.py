from __future__ import annotations

import asyncio
from collections.abc import Callable
from pathlib import Path

import pytest
import sqlalchemy as sa
from sqlalchemy.engine import URL

from reportsql_mcp.catalog import ConnectionProfile, FernetCipher, ProfileStore
from reportsql_mcp.catalog.mcp_tools import _merge_profile
from reportsql_mcp.services.config_service import EngineConfig
from reportsql_mcp.services.session import SessionManager

MakeProfile = Callable[..., ConnectionProfile]


@pytest.fixture
def session(sqlite_engine: sa.Engine, cipher: FernetCipher, tmp_path: Path) -> SessionManager:
    def factory(_url: URL, _config: EngineConfig) -> sa.Engine:
        return sqlite_engine

    return SessionManager(
        EngineConfig(),
        cipher=cipher,
        store=ProfileStore(tmp_path / "connections.json", cipher),
        engine_factory=factory,
    )


def test_connect_and_disconnect_off_thread(
    session: SessionManager, make_profile: MakeProfile
) -> None:
    async def scenario() -> None:
        result = await session.connect(make_profile())
        assert result.ok
        assert session.catalog.is_connected
        assert await session.run(session.catalog.list_tables) == []

        await session.disconnect()
        assert not session.catalog.is_connected

    asyncio.run(scenario())


def test_failed_connect_leaves_session_disconnected(
    session: SessionManager, make_profile: MakeProfile
) -> None:
    result = asyncio.run(session.connect(make_profile(database="")))
    assert not result.ok
    assert not session.catalog.is_connected


def test_save_and_find_profile(
    session: SessionManager, make_profile: MakeProfile, cipher: FernetCipher
) -> None:
    session.save_profile(make_profile(password_token="pw"))
    session.save_profile(make_profile(port=6543, password_token="pw2"))

    saved = session.store.load_profiles()
    assert len(saved) == 1
    found = session.find_profile("Test")
    assert found is not None
    assert found.port == 6543
    assert cipher.decrypt(found.password_token or "") == "pw2"
    assert session.find_profile("nope") is None


def test_singleton_reset() -> None:
    SessionManager.reset_instance()
    assert SessionManager._instance is None


def test_tool_fields_override_saved_profile(
    session: SessionManager, make_profile: MakeProfile
) -> None:
    session.save_profile(make_profile(password_token="pw"))

    merged = _merge_profile(session, "Test", None, "db.internal", 0, None, None, None)
    assert merged.host == "db.internal"
    assert merged.port == 5432
    assert merged.database == "reports"
    assert merged.password_token is not None

    adhoc = _merge_profile(session, "", "MySQL", "h", None, "shop", "u", "secret")
    assert adhoc.vendor_key == "mysql"
    assert adhoc.port == 3306
    assert adhoc.name == "mysql:h"
    assert adhoc.password_token == "secret"


def test_test_connection_keeps_current_session(
    session: SessionManager, make_profile: MakeProfile
) -> None:
    async def scenario() -> None:
        assert (await session.connect(make_profile())).ok
        checked = await session.run(
            lambda: session.catalog.test_connection(make_profile(name="Other"))
        )
        assert checked.ok
        assert session.catalog.profile is not None
        assert session.catalog.profile.name == "Test"

    asyncio.run(scenario())
