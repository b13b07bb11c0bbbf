"""SQLGlot-backed syntax checks.

Provides typed service wrappers around sqlglot used to sanity-check compiled
report queries for the active vendor.
"""

from __future__ import annotations

from .models import (
    Dialect,
    SqlErrorAssistRequest,
    SqlErrorAssistResult,
    SqlValidationRequest,
    SqlValidationResult,
)
from .service import SqlglotService

__all__ = [
    "Dialect",
    "SqlErrorAssistRequest",
    "SqlErrorAssistResult",
    "SqlValidationRequest",
    "SqlValidationResult",
    "SqlglotService",
]
