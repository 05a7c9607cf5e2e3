"""Shared-secret verification for the asset pages and the dashboard.

Secrets are never compared in plaintext. A configured secret is either an
encoded PBKDF2-SHA256 hash (``pbkdf2_sha256$<iterations>$<salt hex>$<hash hex>``,
produced by :func:`hash_secret`) or a plaintext value that is hashed once
when the verifier is built.
"""

from __future__ import annotations

import logging
import secrets
from typing import Protocol

from cryptography.exceptions import InvalidKey
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from assettrack.exceptions import AuthenticationError, TrackerConfigError

_logger = logging.getLogger(__name__)

_SCHEME = "pbkdf2_sha256"
DEFAULT_ITERATIONS = 390_000
_SALT_BYTES = 16
_KEY_LENGTH = 32


class CredentialVerifier(Protocol):
    """Anything that can accept or reject a submitted secret."""

    def verify(self, candidate: str) -> bool: ...


def _kdf(salt: bytes, iterations: int) -> PBKDF2HMAC:
    return PBKDF2HMAC(algorithm=hashes.SHA256(), length=_KEY_LENGTH, salt=salt, iterations=iterations)


def hash_secret(secret: str, *, iterations: int = DEFAULT_ITERATIONS, salt: bytes | None = None) -> str:
    """Return the encoded hash for *secret* (store this, not the secret)."""
    salt = salt if salt is not None else secrets.token_bytes(_SALT_BYTES)
    digest = _kdf(salt, iterations).derive(secret.encode("utf-8"))
    return f"{_SCHEME}${iterations}${salt.hex()}${digest.hex()}"


class HashedSecretVerifier:
    """Constant-time verification against one PBKDF2-SHA256 hash."""

    def __init__(self, digest: bytes, salt: bytes, iterations: int = DEFAULT_ITERATIONS) -> None:
        if iterations < 1:
            raise TrackerConfigError(f"iterations must be positive, got {iterations}")
        self._digest = digest
        self._salt = salt
        self._iterations = iterations

    @classmethod
    def from_encoded(cls, encoded: str) -> HashedSecretVerifier:
        parts = encoded.strip().split("$")
        if len(parts) != 4 or parts[0] != _SCHEME:
            raise TrackerConfigError(f"expected '{_SCHEME}$<iterations>$<salt>$<hash>'")
        try:
            iterations = int(parts[1])
            salt = bytes.fromhex(parts[2])
            digest = bytes.fromhex(parts[3])
        except ValueError as exc:
            raise TrackerConfigError(f"malformed {_SCHEME} hash: {exc}") from exc
        return cls(digest, salt, iterations)

    @classmethod
    def from_plaintext(cls, secret: str, *, iterations: int = DEFAULT_ITERATIONS) -> HashedSecretVerifier:
        if not secret:
            raise TrackerConfigError("secret must be non-empty")
        return cls.from_encoded(hash_secret(secret, iterations=iterations))

    @classmethod
    def from_setting(cls, value: str, *, iterations: int = DEFAULT_ITERATIONS) -> HashedSecretVerifier:
        """Accept either an encoded hash or a plaintext secret."""
        if value.startswith(f"{_SCHEME}$"):
            return cls.from_encoded(value)
        return cls.from_plaintext(value, iterations=iterations)

    def verify(self, candidate: str) -> bool:
        try:
            _kdf(self._salt, self._iterations).verify(candidate.encode("utf-8"), self._digest)
        except InvalidKey:
            return False
        return True


class DenyAllVerifier:
    """Used when no secret is configured: every attempt is rejected."""

    def verify(self, candidate: str) -> bool:
        return False


def build_verifier(setting: str | None, *, name: str) -> CredentialVerifier:
    if not setting:
        _logger.warning("No %s configured; all attempts will be rejected", name)
        return DenyAllVerifier()
    return HashedSecretVerifier.from_setting(setting)


def require(verifier: CredentialVerifier, candidate: str, *, name: str) -> None:
    """Raise :class:`AuthenticationError` unless *candidate* is accepted."""
    if not verifier.verify(candidate):
        _logger.info("Rejected %s attempt", name)
        raise AuthenticationError(f"Incorrect {name}")
