"""Typed phases of a single paged fetch.

Every ``PagedExecutor.fetch_page`` call walks
``IDLE -> COUNT_PENDING -> {ROWS_READY | REFUSED | FAILED}`` from scratch;
no phase survives between calls.
"""

from __future__ import annotations

from enum import Enum
from typing import Final


class FetchPhase(Enum):
    """Phase of the count-then-fetch state machine."""

    IDLE = "idle"
    COUNT_PENDING = "count_pending"
    ROWS_READY = "rows_ready"
    REFUSED = "refused"
    FAILED = "failed"


# Convenience constants for call sites
TERMINAL_PHASES: Final[frozenset[FetchPhase]] = frozenset(
    {FetchPhase.ROWS_READY, FetchPhase.REFUSED, FetchPhase.FAILED}
)
