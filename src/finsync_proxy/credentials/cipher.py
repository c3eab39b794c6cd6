"""At-rest encryption for Friend API passwords.

The Friend API only accepts the plaintext password at login, so it must be
recoverable; it is stored as a Fernet token instead of in the clear.
"""
import base64
import hashlib
import logging

from cryptography.fernet import Fernet, InvalidToken

logger = logging.getLogger(__name__)


class CredentialCipher:
    """Symmetric Fernet cipher keyed from a configuration secret."""

    def __init__(self, key: bytes) -> None:
        self._fernet = Fernet(key)

    @classmethod
    def from_secret(cls, secret: str) -> "CredentialCipher":
        """Derive a Fernet key from an arbitrary secret string (SHA-256, urlsafe base64)."""
        if not secret:
            raise ValueError("Credential encryption secret is not configured")
        digest = hashlib.sha256(secret.encode()).digest()
        return cls(base64.urlsafe_b64encode(digest))

    def encrypt(self, plaintext: str) -> str:
        return self._fernet.encrypt(plaintext.encode()).decode()

    def decrypt(self, token: str) -> str:
        """Decrypt a stored password.

        Raises:
            ValueError: if the token was produced with a different key or is corrupt.
        """
        try:
            return self._fernet.decrypt(token.encode()).decode()
        except InvalidToken as exc:
            logger.error("Failed to decrypt stored credential (wrong key or corrupt data)")
            raise ValueError("Stored credential could not be decrypted") from exc
