from __future__ import annotations

import uuid
from dataclasses import replace
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from auth_service.api import routes
from auth_service.config import Settings
from auth_service.domain.account import BusinessAccount, UserAccount
from auth_service.domain.contracts import RegisterBusinessInput, RegisterUserInput
from auth_service.main import build_service
from auth_service.security.tokens import TokenIssuer


class FakeRepository:
    """In-memory repository mimicking Postgres-backed behaviors."""

    def __init__(self) -> None:
        self.users: dict[str, UserAccount] = {}
        self.businesses: dict[str, BusinessAccount] = {}
        self.writes = 0
        self.failure: Exception | None = None

    def _maybe_fail(self) -> None:
        if self.failure is not None:
            raise self.failure

    async def get_user_by_email(self, email: str) -> UserAccount | None:
        self._maybe_fail()
        return next((user for user in self.users.values() if user.email == email), None)

    async def get_user_by_username(self, username: str) -> UserAccount | None:
        self._maybe_fail()
        return next((user for user in self.users.values() if user.username == username), None)

    async def create_user(self, payload: RegisterUserInput, password_hash: str) -> UserAccount:
        self._maybe_fail()
        self.writes += 1
        user = UserAccount(
            id=str(uuid.uuid4()),
            email=payload.email,
            name=payload.name,
            password_hash=password_hash,
            age=payload.age,
            username=payload.username,
            surname=payload.surname,
        )
        self.users[user.id] = user
        return user

    async def update_user(self, user_id: str, changes: dict[str, Any]) -> UserAccount | None:
        self._maybe_fail()
        self.writes += 1
        user = self.users.get(user_id)
        if user is None:
            return None
        self.users[user_id] = replace(user, **changes)
        return self.users[user_id]

    async def get_business_by_email(self, email: str) -> BusinessAccount | None:
        self._maybe_fail()
        return next((b for b in self.businesses.values() if b.email == email), None)

    async def get_business_by_username(self, busi_username: str) -> BusinessAccount | None:
        self._maybe_fail()
        return next(
            (b for b in self.businesses.values() if b.busi_username == busi_username), None
        )

    async def create_business(
        self, payload: RegisterBusinessInput, password_hash: str
    ) -> BusinessAccount:
        self._maybe_fail()
        self.writes += 1
        business = BusinessAccount(
            id=str(uuid.uuid4()),
            email=payload.email,
            name=payload.name,
            busi_username=payload.busi_username,
            category=payload.category,
            password_hash=password_hash,
            rating=payload.rating,
            description=payload.description,
            address=payload.address,
        )
        self.businesses[business.id] = business
        return business


@pytest.fixture
def settings() -> Settings:
    return Settings(
        http_port="8000",
        jwt_secret="test-secret-0123456789abcdef0123456789",
        jwt_issuer="test-issuer",
        jwt_ttl_seconds=600,
        bcrypt_rounds=4,
    )


@pytest.fixture
def token_issuer(settings: Settings) -> TokenIssuer:
    return TokenIssuer(
        settings.jwt_secret, issuer=settings.jwt_issuer, ttl_seconds=settings.jwt_ttl_seconds
    )


@pytest.fixture
def repository() -> FakeRepository:
    return FakeRepository()


@pytest.fixture
def service(settings, repository):
    return build_service(settings, repository)


@pytest.fixture
def api_client(service, repository):
    """Provide a FastAPI test client with isolated state."""
    app = FastAPI()
    app.include_router(routes.router)
    routes.install_error_handlers(app)
    app.state.account_service = service

    with TestClient(app) as client:
        yield client, repository
