"""Password token encryption for persisted connection profiles.

The engine only depends on the ``CredentialCipher`` protocol. ``FernetCipher``
is the bundled implementation: Fernet tokens are authenticated, so the
"does it decrypt?" test used by ``is_encrypted`` cannot mistake a short
plaintext password for a token.
"""

from __future__ import annotations

import base64
import hashlib
from typing import Protocol, runtime_checkable

from cryptography.fernet import Fernet, InvalidToken
from fastmcp.utilities.logging import get_logger

_logger = get_logger(__name__)


@runtime_checkable
class CredentialCipher(Protocol):
    """Encryption collaborator used for password tokens."""

    def encrypt(self, plaintext: str) -> str: ...

    def decrypt(self, token: str) -> str: ...

    def is_encrypted(self, token: str | None) -> bool: ...


class FernetCipher:
    """Fernet-based ``CredentialCipher``.

    Args:
        key: URL-safe base64 Fernet key. When omitted, ``passphrase`` is
            stretched into a key.
        passphrase: Secret used to derive a key when no explicit key is given
    """

    def __init__(self, key: bytes | str | None = None, *, passphrase: str | None = None) -> None:
        if key is None:
            if not passphrase:
                msg = "FernetCipher requires a key or a passphrase"
                raise ValueError(msg)
            key = self.derive_key(passphrase)
        self._fernet = Fernet(key)

    @staticmethod
    def derive_key(passphrase: str) -> bytes:
        """Derive a stable Fernet key from a passphrase."""
        digest = hashlib.sha256(passphrase.encode("utf-8")).digest()
        return base64.urlsafe_b64encode(digest)

    @staticmethod
    def generate_key() -> str:
        return Fernet.generate_key().decode("ascii")

    def encrypt(self, plaintext: str) -> str:
        if not plaintext or not plaintext.strip():
            return ""
        return self._fernet.encrypt(plaintext.encode("utf-8")).decode("ascii")

    def decrypt(self, token: str) -> str:
        """Decrypt a token; raises ``InvalidToken`` for anything that is not one."""
        if not token or not token.strip():
            return ""
        return self._fernet.decrypt(token.encode("ascii")).decode("utf-8")

    def is_encrypted(self, token: str | None) -> bool:
        if not token:
            return False
        try:
            self._fernet.decrypt(token.encode("ascii"))
        except (InvalidToken, UnicodeEncodeError):
            return False
        return True


def reveal_password(cipher: CredentialCipher, token: str | None) -> str | None:
    """Return the plaintext for a stored password value.

    Values that are not tokens (e.g. typed into the UI and not yet saved) are
    returned unchanged.
    """
    if token is None:
        return None
    if cipher.is_encrypted(token):
        return cipher.decrypt(token)
    _logger.debug("Password value is not an encrypted token; using it as entered")
    return token
