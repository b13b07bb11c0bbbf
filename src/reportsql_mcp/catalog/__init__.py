"""Connection profiles, credentials and catalog introspection."""

from __future__ import annotations

from .catalog import Catalog, ConnectResult, QueryRows
from .credentials import CredentialCipher, FernetCipher, reveal_password
from .profile import ConnectionProfile, mask_password
from .store import ProfileStore
from .types import ColumnDescriptor, LogicalKind, classify_type

__all__ = [
    "Catalog",
    "ColumnDescriptor",
    "ConnectResult",
    "ConnectionProfile",
    "CredentialCipher",
    "FernetCipher",
    "LogicalKind",
    "ProfileStore",
    "QueryRows",
    "classify_type",
    "mask_password",
    "reveal_password",
]
