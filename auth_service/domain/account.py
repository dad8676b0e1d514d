from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class UserAccount:
    """Aggregate root for an individual user identity."""

    id: str
    email: str
    name: str
    password_hash: str
    age: int | None = None
    username: str | None = None
    surname: str | None = None


@dataclass(slots=True)
class BusinessAccount:
    """Aggregate root for a business identity."""

    id: str
    email: str
    name: str
    busi_username: str
    category: str
    password_hash: str
    rating: float | None = None
    description: str | None = None
    address: str | None = None
