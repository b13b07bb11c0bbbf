"""JSON persistence for connection profiles and templates.

The file holds an ordered list of profiles and an optional list of named
templates::

    {
      "profiles": [{"name": "...", "vendor_key": "postgresql", ...}],
      "templates": [{"name": "Local Postgres", "type": "postgresql", ...}]
    }

Passwords are written only as cipher tokens.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from fastmcp.utilities.logging import get_logger
from pydantic import BaseModel, Field, ValidationError

from .credentials import CredentialCipher
from .profile import ConnectionProfile

_logger = get_logger(__name__)


class ConnectionProfileRecord(BaseModel):
    """Serialized form of a ``ConnectionProfile``."""

    name: str
    vendor_key: str
    host: str
    port: int = Field(ge=0)
    database: str
    username: str
    password: str | None = Field(default=None, description="Cipher token, never plaintext")

    @classmethod
    def from_profile(cls, profile: ConnectionProfile) -> ConnectionProfileRecord:
        return cls(
            name=profile.name,
            vendor_key=profile.vendor_key,
            host=profile.host,
            port=profile.port,
            database=profile.database,
            username=profile.username,
            password=profile.password_token,
        )

    def to_profile(self) -> ConnectionProfile:
        return ConnectionProfile(
            name=self.name,
            vendor_key=self.vendor_key,
            host=self.host,
            port=self.port,
            database=self.database,
            username=self.username,
            password_token=self.password,
        )


class ProfileFile(BaseModel):
    profiles: list[ConnectionProfileRecord] = Field(default_factory=list)
    templates: list[dict[str, Any]] = Field(default_factory=list)


class ProfileStore:
    """Load and save connection profiles from a JSON file."""

    def __init__(self, path: Path | str, cipher: CredentialCipher) -> None:
        self.path = Path(path)
        self._cipher = cipher

    def _read(self) -> ProfileFile:
        if not self.path.exists():
            return ProfileFile()
        try:
            return ProfileFile.model_validate_json(self.path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as exc:
            _logger.warning("Could not read profiles from %s: %s", self.path, exc)
            return ProfileFile()

    def load_profiles(self) -> list[ConnectionProfile]:
        return [record.to_profile() for record in self._read().profiles]

    def load_templates(self) -> list[dict[str, Any]]:
        return list(self._read().templates)

    def get_template(self, name: str) -> dict[str, Any]:
        """Return the template with the given name, or an empty dict."""
        for template in self.load_templates():
            if template.get("name") == name:
                return template
        return {}

    def save_profiles(self, profiles: list[ConnectionProfile]) -> None:
        """Persist profiles in order, encrypting any plaintext password first."""
        current = self._read()
        current.profiles = [
            ConnectionProfileRecord.from_profile(p.with_encrypted_password(self._cipher))
            for p in profiles
        ]
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(current.model_dump_json(indent=2), encoding="utf-8")
        _logger.info("Saved %d connection profiles to %s", len(profiles), self.path)
