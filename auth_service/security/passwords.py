"""bcrypt-backed password hashing."""

from __future__ import annotations

import logging

import bcrypt

logger = logging.getLogger(__name__)

# bcrypt only reads the first 72 bytes and recent releases reject longer input.
_BCRYPT_MAX_BYTES = 72


def _encode(plain: str) -> bytes:
    return plain.encode("utf-8")[:_BCRYPT_MAX_BYTES]


class PasswordHasher:
    """Salted, adaptive password hashing with a configurable work factor."""

    def __init__(self, rounds: int = 10) -> None:
        self._rounds = rounds

    @property
    def rounds(self) -> int:
        return self._rounds

    def hash(self, plain: str) -> str:
        """Return a bcrypt digest of ``plain``; every call uses a fresh salt."""
        return bcrypt.hashpw(_encode(plain), bcrypt.gensalt(rounds=self._rounds)).decode("utf-8")

    def verify(self, plain: str, hashed: str) -> bool:
        """Return ``True`` if ``plain`` matches ``hashed``.

        A mismatch or a malformed stored digest yields ``False`` instead of raising.
        """
        try:
            return bcrypt.checkpw(_encode(plain), hashed.encode("utf-8"))
        except ValueError:
            logger.warning("stored password hash is not a valid bcrypt digest")
            return False
