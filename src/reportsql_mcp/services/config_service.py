"""Configuration service for reportsql-mcp.

This module provides the immutable ``EngineConfig`` passed into the catalog
and executor, its environment-variable loader, and pooled engine creation.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path

import sqlalchemy as sa
from sqlalchemy.engine import URL, make_url

# Driver keyword bounding the TCP connect, per SQLAlchemy backend name.
_CONNECT_TIMEOUT_ARG: dict[str, str] = {
    "postgresql": "connect_timeout",
    "mysql": "connect_timeout",
    "mssql": "timeout",
    "oracle": "tcp_connect_timeout",
}


@dataclass(frozen=True)
class EngineConfig:
    """Thresholds and pool settings for the query engine.

    Attributes:
        refusal_threshold: Counts above this are refused unless force-loaded
        full_load_threshold: Counts up to this are loaded in a single page
        page_size: Maximum rows per page for bounded retrieval
        validation_timeout_sec: Bound for the connect-time validation round-trip
        max_pool_size: Connection pool size per catalog
        pool_timeout_sec: Wait for a free pooled connection
    """

    refusal_threshold: int = 10_000
    full_load_threshold: int = 2_000
    page_size: int = 2_000
    validation_timeout_sec: int = 5
    max_pool_size: int = 10
    pool_timeout_sec: int = 30

    def __post_init__(self) -> None:
        if self.full_load_threshold > self.refusal_threshold:
            msg = "full_load_threshold must not exceed refusal_threshold"
            raise ValueError(msg)
        if self.page_size <= 0:
            msg = "page_size must be positive"
            raise ValueError(msg)


def _env_int(name: str, default: int, minimum: int) -> int:
    val = os.getenv(name, str(default))
    try:
        n = int(val)
    except ValueError:
        n = default
    return max(minimum, n)


class ConfigService:
    """Service for managing configuration and database engines."""

    @staticmethod
    def load_engine_config() -> EngineConfig:
        """Build an ``EngineConfig`` from REPORTSQL_* environment variables."""
        refusal = _env_int("REPORTSQL_REFUSAL_THRESHOLD", 10_000, 1)
        full_load = min(_env_int("REPORTSQL_FULL_LOAD_THRESHOLD", 2_000, 0), refusal)
        return EngineConfig(
            refusal_threshold=refusal,
            full_load_threshold=full_load,
            page_size=_env_int("REPORTSQL_PAGE_SIZE", 2_000, 1),
            validation_timeout_sec=_env_int("REPORTSQL_VALIDATION_TIMEOUT", 5, 1),
            max_pool_size=_env_int("REPORTSQL_POOL_SIZE", 10, 1),
            pool_timeout_sec=_env_int("REPORTSQL_POOL_TIMEOUT", 30, 1),
        )

    @staticmethod
    def profiles_path() -> Path:
        """Location of the connection profile file."""
        return Path(os.getenv("REPORTSQL_PROFILES_PATH", "connections.json"))

    @staticmethod
    def get_secret_key() -> str:
        """Passphrase used to encrypt stored passwords.

        Raises:
            ValueError: If REPORTSQL_SECRET_KEY environment variable is not set
        """
        secret = os.getenv("REPORTSQL_SECRET_KEY")
        if not secret:
            error_msg = "REPORTSQL_SECRET_KEY environment variable not set"
            raise ValueError(error_msg)
        return secret

    @staticmethod
    def connect_args(url: URL | str, config: EngineConfig) -> dict[str, int]:
        """Driver arguments bounding the connect by ``validation_timeout_sec``.

        Backends without a known keyword get no extra arguments.
        """
        backend = make_url(url).get_backend_name()
        arg = _CONNECT_TIMEOUT_ARG.get(backend)
        return {arg: config.validation_timeout_sec} if arg else {}

    @staticmethod
    def create_database_engine(url: URL | str, config: EngineConfig) -> sa.Engine:
        """Create a pooled SQLAlchemy engine.

        Args:
            url: Database connection URL, credentials included
            config: Pool size, pool timeout and connect timeout settings
        """
        return sa.create_engine(
            url,
            connect_args=ConfigService.connect_args(url, config),
            pool_size=config.max_pool_size,
            pool_timeout=config.pool_timeout_sec,
            pool_pre_ping=True,
            pool_recycle=1800,
        )
