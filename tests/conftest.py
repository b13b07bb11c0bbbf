from __future__ import annotations

from collections.abc import Callable, Iterator

import pytest
import sqlalchemy as sa
from sqlalchemy.engine import URL
from sqlalchemy.pool import StaticPool

from reportsql_mcp.catalog import Catalog, ConnectionProfile, FernetCipher
from reportsql_mcp.services.config_service import EngineConfig


@pytest.fixture
def sqlite_engine() -> Iterator[sa.Engine]:
    """Single shared in-memory database; every pooled checkout sees the same data."""
    engine = sa.create_engine(
        "sqlite+pysqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    yield engine
    engine.dispose()


@pytest.fixture
def cipher() -> FernetCipher:
    return FernetCipher(passphrase="test-secret")


@pytest.fixture
def make_catalog(
    sqlite_engine: sa.Engine, cipher: FernetCipher
) -> Callable[..., Catalog]:
    def _make(config: EngineConfig | None = None) -> Catalog:
        def factory(_url: URL, _config: EngineConfig) -> sa.Engine:
            return sqlite_engine

        return Catalog(config or EngineConfig(), cipher, engine_factory=factory)

    return _make


def _profile(vendor: str = "postgresql", **overrides: object) -> ConnectionProfile:
    values: dict[str, object] = {
        "name": "Test",
        "vendor_key": vendor,
        "host": "localhost",
        "port": 5432,
        "database": "reports",
        "username": "tester",
        "password_token": None,
    }
    values.update(overrides)
    return ConnectionProfile(**values)  # type: ignore[arg-type]


@pytest.fixture
def make_profile() -> Callable[..., ConnectionProfile]:
    return _profile
