"""Account service orchestrating validation, persistence, hashing and token issuance."""

from __future__ import annotations

import asyncio
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterator, Mapping, TypeVar

from .account import BusinessAccount, UserAccount
from .contracts import AccountStore
from .errors import (
    DUPLICATE_ACCOUNT,
    SERVER_ERROR,
    UNEXPECTED_ERROR,
    AccountError,
    AuthError,
    ConflictError,
    DependencyError,
    NotFoundError,
    UnexpectedError,
)
from .validation import (
    validate_business_registration,
    validate_login,
    validate_user_registration,
    validate_user_update,
)
from ..security.passwords import PasswordHasher
from ..security.tokens import TokenClaims, TokenIssuer

logger = logging.getLogger(__name__)

USER_NOT_FOUND = "User not found"
BUSINESS_NOT_FOUND = "Business not found"
INCORRECT_PASSWORD = "Incorrect password"

AccountT = TypeVar("AccountT", UserAccount, BusinessAccount)


@dataclass(slots=True)
class LoginResult:
    """Signed token together with the account it was issued for."""

    token: str
    account: UserAccount | BusinessAccount


@contextmanager
def _workflow_errors(operation: str, *, generic_message: str | None = None) -> Iterator[None]:
    """Turn store and unexpected failures into 500-class account errors.

    With ``generic_message`` the underlying error text is replaced so nothing
    about the failure reaches the caller; otherwise it is passed through.
    """
    try:
        yield
    except (DependencyError, UnexpectedError) as exc:
        if generic_message is None:
            raise
        raise type(exc)(generic_message) from exc
    except AccountError:
        raise
    except Exception as exc:
        logger.exception("unexpected failure during %s", operation)
        raise UnexpectedError(generic_message or str(exc) or UNEXPECTED_ERROR) from exc


async def _lookup_all(*lookups: Awaitable[Any]) -> list[Any]:
    """Run store lookups concurrently and re-raise the first failure in argument order."""
    results = await asyncio.gather(*lookups, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return results


class AccountService:
    """Registration, login and update workflows for users and businesses."""

    def __init__(self, store: AccountStore, hasher: PasswordHasher, tokens: TokenIssuer) -> None:
        """Store dependencies used to orchestrate persistence and token issuance."""
        self._store = store
        self._hasher = hasher
        self._tokens = tokens

    async def _hash(self, password: str) -> str:
        # bcrypt is deliberately slow; keep it off the event loop.
        return await asyncio.to_thread(self._hasher.hash, password)

    async def _verify(self, password: str, password_hash: str) -> bool:
        return await asyncio.to_thread(self._hasher.verify, password, password_hash)

    async def register_user(self, payload: Mapping[str, Any]) -> UserAccount:
        """Validate and create a user account, rejecting duplicate email or username."""
        data = validate_user_registration(payload)
        with _workflow_errors("user registration", generic_message=SERVER_ERROR):
            lookups = [self._store.get_user_by_email(data.email)]
            if data.username:
                lookups.append(self._store.get_user_by_username(data.username))
            if any(await _lookup_all(*lookups)):
                raise ConflictError(DUPLICATE_ACCOUNT)

            password_hash = await self._hash(data.password)
            account = await self._store.create_user(data, password_hash)
        logger.info("registered user account %s", account.id)
        return account

    async def register_business(self, payload: Mapping[str, Any]) -> BusinessAccount:
        """Validate and create a business account, rejecting duplicate email or username."""
        data = validate_business_registration(payload)
        with _workflow_errors("business registration"):
            existing = await _lookup_all(
                self._store.get_business_by_email(data.email),
                self._store.get_business_by_username(data.busi_username),
            )
            if any(existing):
                raise ConflictError(DUPLICATE_ACCOUNT)

            password_hash = await self._hash(data.password)
            account = await self._store.create_business(data, password_hash)
        logger.info("registered business account %s", account.id)
        return account

    async def login_user(self, payload: Mapping[str, Any]) -> LoginResult:
        return await self._login(
            "user login",
            payload,
            self._store.get_user_by_email,
            USER_NOT_FOUND,
            lambda user: TokenClaims(id=user.id, email=user.email, username=user.username),
        )

    async def login_business(self, payload: Mapping[str, Any]) -> LoginResult:
        return await self._login(
            "business login",
            payload,
            self._store.get_business_by_email,
            BUSINESS_NOT_FOUND,
            lambda business: TokenClaims(
                id=business.id, email=business.email, username=business.busi_username
            ),
        )

    async def _login(
        self,
        operation: str,
        payload: Mapping[str, Any],
        lookup: Callable[[str], Awaitable[AccountT | None]],
        not_found_message: str,
        claims_for: Callable[[AccountT], TokenClaims],
    ) -> LoginResult:
        """Authenticate by email and password and issue a session token.

        An unknown email is a 404 while a wrong password is a 400; store
        failures are reported with a generic message.
        """
        credentials = validate_login(payload)
        with _workflow_errors(operation, generic_message=SERVER_ERROR):
            account = await lookup(credentials.email)
            if account is None:
                raise NotFoundError(not_found_message)
            if not await self._verify(credentials.password, account.password_hash):
                logger.info("%s rejected: password mismatch for account %s", operation, account.id)
                raise AuthError(INCORRECT_PASSWORD)
            token = self._tokens.issue(claims_for(account))
        return LoginResult(token=token, account=account)

    async def update_user(self, user_id: str, payload: Mapping[str, Any]) -> UserAccount | None:
        """Apply a partial update to a user; returns ``None`` when no user has ``user_id``."""
        patch = validate_user_update(payload)
        with _workflow_errors("user update"):
            changes = dict(patch.changes)
            if patch.password is not None:
                changes["password_hash"] = await self._hash(patch.password)
            try:
                account = await self._store.update_user(user_id, changes)
            except ConflictError as exc:
                # Update responses are 200 or 500 only.
                raise DependencyError(exc.message) from exc
        if account is None:
            logger.info("user update matched no account for id %s", user_id)
        return account
