"""Pydantic payloads returned by the catalog MCP tools."""

from __future__ import annotations

from pydantic import BaseModel, Field

from .profile import ConnectionProfile
from .types import ColumnDescriptor, LogicalKind


class ColumnInfo(BaseModel):
    """Column metadata for pickers and filter editors."""

    name: str = Field(description="Column name")
    native_type: str = Field(description="Vendor type name")
    kind: LogicalKind = Field(description="Logical kind used for literal formatting")
    size: int = Field(default=0, description="Declared length or precision")
    nullable: bool = Field(default=True)
    default_value: str | None = Field(default=None)
    is_primary_key: bool = Field(default=False)
    is_auto_increment: bool = Field(default=False)
    display_name: str = Field(description="Rendered label, e.g. 'id (INTEGER) [PK]'")

    @classmethod
    def from_descriptor(cls, column: ColumnDescriptor) -> ColumnInfo:
        return cls(
            name=column.name,
            native_type=column.native_type_name,
            kind=column.logical_kind,
            size=column.size,
            nullable=column.nullable,
            default_value=column.default_value,
            is_primary_key=column.is_primary_key,
            is_auto_increment=column.is_auto_increment,
            display_name=column.display_name(),
        )


class ConnectionStatus(BaseModel):
    """Result of a connect or disconnect request."""

    connected: bool = Field(description="True when a validated pool is open")
    message: str = Field(description="Outcome summary; never contains the password")
    profile: str | None = Field(default=None, description="Connected profile display name")
    vendor: str | None = Field(default=None, description="Connected vendor key")


class ProfileSummary(BaseModel):
    """Saved profile without its password token."""

    name: str
    vendor: str
    display_name: str
    has_password: bool

    @classmethod
    def from_profile(cls, profile: ConnectionProfile) -> ProfileSummary:
        return cls(
            name=profile.name,
            vendor=profile.vendor_key,
            display_name=profile.display_name(),
            has_password=bool(profile.password_token),
        )
