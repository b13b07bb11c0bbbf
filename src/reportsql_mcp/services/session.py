"""Process-wide report session for the MCP server.

Holds the single ``Catalog`` and ``PagedExecutor`` used by the tools and
serializes connect/disconnect, which the catalog does not guard itself.
Blocking engine calls are offloaded with ``asyncio.to_thread``.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
import threading
from typing import ClassVar, TypeVar

from fastmcp.utilities.logging import get_logger

from reportsql_mcp.catalog.catalog import Catalog, ConnectResult, EngineFactory
from reportsql_mcp.catalog.credentials import CredentialCipher, FernetCipher
from reportsql_mcp.catalog.profile import ConnectionProfile
from reportsql_mcp.catalog.store import ProfileStore
from reportsql_mcp.execute.runner import PagedExecutor
from reportsql_mcp.services.config_service import ConfigService, EngineConfig

_logger = get_logger(__name__)

T = TypeVar("T")


def _default_cipher() -> FernetCipher:
    try:
        return FernetCipher(passphrase=ConfigService.get_secret_key())
    except ValueError:
        _logger.warning(
            "REPORTSQL_SECRET_KEY not set; using a per-process key, saved passwords will not "
            "survive a restart"
        )
        return FernetCipher(FernetCipher.generate_key())


class SessionManager:
    """Singleton owner of the catalog, executor and profile store.

    Tests construct instances directly with an injected config, cipher and
    engine factory; the server uses ``get_instance()``.
    """

    _instance: ClassVar[SessionManager | None] = None
    _lock: ClassVar[threading.Lock] = threading.Lock()

    def __init__(
        self,
        config: EngineConfig | None = None,
        *,
        cipher: CredentialCipher | None = None,
        store: ProfileStore | None = None,
        engine_factory: EngineFactory | None = None,
    ) -> None:
        self.config = config or ConfigService.load_engine_config()
        self.cipher: CredentialCipher = cipher or _default_cipher()
        self.store = store or ProfileStore(ConfigService.profiles_path(), self.cipher)
        if engine_factory is None:
            self.catalog = Catalog(self.config, self.cipher)
        else:
            self.catalog = Catalog(self.config, self.cipher, engine_factory=engine_factory)
        self.executor = PagedExecutor(self.catalog, self.config)
        self._connect_lock = asyncio.Lock()

    @classmethod
    def get_instance(cls) -> SessionManager:
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = cls()
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Reset the singleton instance (primarily for testing)."""
        with cls._lock:
            cls._instance = None

    async def run(self, func: Callable[[], T]) -> T:
        """Run a blocking engine call on a worker thread."""
        return await asyncio.to_thread(func)

    async def connect(self, profile: ConnectionProfile) -> ConnectResult:
        async with self._connect_lock:
            return await self.run(lambda: self.catalog.connect(profile))

    async def disconnect(self) -> None:
        async with self._connect_lock:
            await self.run(self.catalog.disconnect)

    def find_profile(self, name: str) -> ConnectionProfile | None:
        """Saved profile by name, else a profile built from a template of that name."""
        for profile in self.store.load_profiles():
            if profile.name == name:
                return profile
        template = self.store.get_template(name)
        if template:
            return ConnectionProfile.from_template(template)
        return None

    def save_profile(self, profile: ConnectionProfile) -> None:
        """Insert or replace a profile by name; the password is stored encrypted."""
        profiles = [p for p in self.store.load_profiles() if p.name != profile.name]
        profiles.append(profile)
        self.store.save_profiles(profiles)
