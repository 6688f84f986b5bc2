"""
AES-256-GCM envelope encryption for stored AI provider keys.

Each call to ``encrypt`` draws a fresh random 16-byte IV and returns the
ciphertext, IV and 16-byte authentication tag as three hex strings. These map
1:1 to the ``encrypted_key``, ``iv`` and ``auth_tag`` columns, so the hex shape
is a storage contract: existing rows must keep decrypting.

The key is supplied from configuration (``ENCRYPTION_KEY``, 64 hex characters)
and is never persisted here.
"""

import binascii
import os
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from app.core.config import settings
from app.utils.exceptions import ConfigurationError, TamperError

KEY_HEX_LENGTH = 64  # 32 bytes
IV_LENGTH = 16  # 128-bit IV
AUTH_TAG_LENGTH = 16  # 128-bit tag

_HEX_RE = re.compile(r"^[0-9a-fA-F]*$")


@dataclass(frozen=True)
class EncryptedSecret:
    """Hex-encoded ciphertext, IV and authentication tag."""

    ciphertext: str
    iv: str
    auth_tag: str


class SecretCipher:
    """Encrypts and decrypts secrets with a single configured AES-256 key."""

    def __init__(self, key_hex: Optional[str]):
        self._aesgcm = AESGCM(self._parse_key(key_hex))

    @classmethod
    def from_settings(cls) -> "SecretCipher":
        return cls(settings.ENCRYPTION_KEY)

    @staticmethod
    def _parse_key(key_hex: Optional[str]) -> bytes:
        if not key_hex:
            raise ConfigurationError("ENCRYPTION_KEY environment variable is not set")
        key_hex = key_hex.strip()
        if len(key_hex) != KEY_HEX_LENGTH or not _HEX_RE.match(key_hex):
            raise ConfigurationError(
                "ENCRYPTION_KEY must be a 64-character hex string (32 bytes)"
            )
        return bytes.fromhex(key_hex)

    def encrypt(self, plaintext: str) -> EncryptedSecret:
        """
        Encrypt a plaintext secret.

        Args:
            plaintext: Secret to protect

        Returns:
            EncryptedSecret with hex ciphertext, IV and auth tag
        """
        iv = os.urandom(IV_LENGTH)
        # AESGCM appends the tag to the ciphertext
        sealed = self._aesgcm.encrypt(iv, plaintext.encode("utf-8"), None)
        ciphertext, auth_tag = sealed[:-AUTH_TAG_LENGTH], sealed[-AUTH_TAG_LENGTH:]
        return EncryptedSecret(
            ciphertext=ciphertext.hex(),
            iv=iv.hex(),
            auth_tag=auth_tag.hex(),
        )

    def decrypt(self, secret: EncryptedSecret) -> str:
        """
        Decrypt a stored secret, verifying its authentication tag.

        Raises:
            TamperError: If the payload is malformed or fails authentication.
                No plaintext is returned in that case.
        """
        try:
            ciphertext = bytes.fromhex(secret.ciphertext)
            iv = bytes.fromhex(secret.iv)
            auth_tag = bytes.fromhex(secret.auth_tag)
        except (ValueError, TypeError, binascii.Error) as e:
            raise TamperError("Encrypted secret is not valid hex") from e

        if len(iv) != IV_LENGTH or len(auth_tag) != AUTH_TAG_LENGTH:
            raise TamperError("Encrypted secret has an invalid IV or auth tag length")

        try:
            plaintext = self._aesgcm.decrypt(iv, ciphertext + auth_tag, None)
        except InvalidTag as e:
            raise TamperError() from e

        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError as e:
            raise TamperError("Decrypted secret is not valid UTF-8") from e


def generate_encryption_key() -> str:
    """Generate a new random 256-bit key as 64 hex characters."""
    return os.urandom(32).hex()


@lru_cache(maxsize=1)
def get_secret_cipher() -> SecretCipher:
    """Process-wide cipher built from settings; raises ConfigurationError if unset."""
    return SecretCipher.from_settings()
