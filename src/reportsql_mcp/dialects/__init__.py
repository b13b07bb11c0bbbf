"""Dialect profiles for the supported database vendors."""

from __future__ import annotations

from .profiles import DialectProfile, LimitStyle, empty_profile, resolve, supported_vendors

__all__ = [
    "DialectProfile",
    "LimitStyle",
    "empty_profile",
    "resolve",
    "supported_vendors",
]
