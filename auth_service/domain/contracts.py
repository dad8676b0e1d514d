"""Domain-level request contracts shared by multiple layers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol

from .account import BusinessAccount, UserAccount


@dataclass(slots=True)
class RegisterUserInput:
    """Validated inputs required to create a user account."""

    email: str
    name: str
    age: int
    password: str
    username: str | None = None
    surname: str | None = None


@dataclass(slots=True)
class RegisterBusinessInput:
    """Validated inputs required to create a business account."""

    email: str
    name: str
    busi_username: str
    category: str
    password: str
    rating: float | None = None
    description: str | None = None
    address: str | None = None


@dataclass(slots=True)
class LoginInput:
    email: str
    password: str


@dataclass(slots=True)
class UserPatch:
    """Type-checked subset of user fields to replace; ``password`` is still plaintext here."""

    changes: dict[str, Any] = field(default_factory=dict)
    password: str | None = None


class AccountStore(Protocol):
    """Persistence capabilities the account workflows depend on."""

    async def get_user_by_email(self, email: str) -> UserAccount | None: ...

    async def get_user_by_username(self, username: str) -> UserAccount | None: ...

    async def create_user(self, payload: RegisterUserInput, password_hash: str) -> UserAccount: ...

    async def update_user(self, user_id: str, changes: dict[str, Any]) -> UserAccount | None: ...

    async def get_business_by_email(self, email: str) -> BusinessAccount | None: ...

    async def get_business_by_username(self, busi_username: str) -> BusinessAccount | None: ...

    async def create_business(
        self, payload: RegisterBusinessInput, password_hash: str
    ) -> BusinessAccount: ...
