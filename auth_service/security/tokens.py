"""Utilities for issuing and validating session JWTs."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any

import jwt

_ALGORITHM = "HS256"


@dataclass(slots=True)
class TokenClaims:
    """Identity claims embedded in every session token."""

    id: str
    email: str
    username: str | None


class TokenIssuer:
    """Signs time-bounded session tokens with the process-wide secret."""

    def __init__(self, secret: str, *, issuer: str, ttl_seconds: int = 3600) -> None:
        if not secret:
            raise ValueError("token signing secret must not be empty")
        self._secret = secret
        self._issuer = issuer
        self._ttl_seconds = ttl_seconds

    def issue(self, claims: TokenClaims) -> str:
        """Create a signed JWT for an authenticated account.

        Parameters
        ----------
        claims:
            Account identity; ``id`` is also written to the standard ``sub`` claim.

        Returns
        -------
        str
            The encoded token, valid for the configured lifetime from now.
        """

        now = int(time.time())
        payload: dict[str, Any] = {
            "iss": self._issuer,
            "sub": claims.id,
            "id": claims.id,
            "email": claims.email,
            "username": claims.username,
            "iat": now,
            "exp": now + self._ttl_seconds,
        }
        return jwt.encode(payload, self._secret, algorithm=_ALGORITHM)

    def decode(self, token: str) -> dict[str, Any]:
        """Decode and verify a token returning its payload.

        Raises
        ------
        jwt.PyJWTError
            Propagated when the token is invalid, expired, or signed by another issuer.
        """

        return jwt.decode(
            token,
            self._secret,
            algorithms=[_ALGORITHM],
            issuer=self._issuer,
        )
