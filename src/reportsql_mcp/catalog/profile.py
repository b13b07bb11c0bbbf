"""Connection profile describing one target database."""

from __future__ import annotations

from dataclasses import dataclass, replace
import re
from typing import Any

from reportsql_mcp.dialects import DialectProfile, resolve

from .credentials import CredentialCipher

_PASSWORD_IN_URL = re.compile(r"(://[^:/@]+:)[^@]+@")


def mask_password(url: str) -> str:
    """Mask credentials embedded in a connection URL for logging."""
    return _PASSWORD_IN_URL.sub(r"\1***@", url)


@dataclass(frozen=True)
class ConnectionProfile:
    """Target database description.

    ``password_token`` holds whatever the caller supplied until the profile is
    persisted; ``with_encrypted_password`` converts it to a cipher token.
    ``None`` means trusted authentication.
    """

    name: str
    vendor_key: str
    host: str
    port: int
    database: str
    username: str
    password_token: str | None = None

    @property
    def dialect(self) -> DialectProfile:
        return resolve(self.vendor_key)

    @property
    def driver_id(self) -> str:
        return self.dialect.driver_id

    @property
    def url_template(self) -> str:
        return self.dialect.url_template

    @property
    def connection_url(self) -> str:
        """URL with host, port and database substituted; credentials excluded."""
        return self.dialect.format_url(self.host, self.port, self.database)

    def is_valid(self) -> bool:
        required = (self.name, self.vendor_key, self.host, self.database, self.username)
        return all(value and value.strip() for value in required) and self.port > 0

    def with_vendor(self, vendor_key: str) -> ConnectionProfile:
        """Switch vendor; driver and URL template follow the new dialect.

        A port still set to the old vendor's default moves to the new default.
        """
        old_default = self.dialect.default_port
        new_dialect = resolve(vendor_key)
        port = self.port
        if (port <= 0 or port == old_default) and new_dialect.default_port:
            port = new_dialect.default_port
        return replace(self, vendor_key=new_dialect.vendor_key or vendor_key, port=port)

    def with_encrypted_password(self, cipher: CredentialCipher) -> ConnectionProfile:
        """Return a copy whose password is a cipher token (idempotent)."""
        token = self.password_token
        if not token or cipher.is_encrypted(token):
            return self
        return replace(self, password_token=cipher.encrypt(token))

    def display_name(self) -> str:
        return f"{self.name} - {self.username}@{self.host}:{self.port}/{self.database}"

    def __str__(self) -> str:
        return f"{self.name} ({self.vendor_key}://{self.host}:{self.port}/{self.database})"

    @classmethod
    def from_template(
        cls, template: dict[str, Any], *, username: str = "", password: str | None = None
    ) -> ConnectionProfile:
        """Build a profile from a named template (name, type, host, port, database)."""
        vendor = str(template.get("type") or template.get("vendor_key") or "")
        port = int(template.get("port") or resolve(vendor).default_port)
        return cls(
            name=str(template.get("name", "")),
            vendor_key=vendor.lower(),
            host=str(template.get("host", "")),
            port=port,
            database=str(template.get("database", "")),
            username=username,
            password_token=password,
        )
