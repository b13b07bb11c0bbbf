"""Services for the reportsql-mcp package."""

from __future__ import annotations

from .config_service import ConfigService, EngineConfig
from .state import TERMINAL_PHASES, FetchPhase

__all__ = [
    "TERMINAL_PHASES",
    "ConfigService",
    "EngineConfig",
    "FetchPhase",
]
