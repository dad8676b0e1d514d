"""Tests for password hashing and session token issuance."""

from __future__ import annotations

import jwt
import pytest

from auth_service.security.passwords import PasswordHasher
from auth_service.security.tokens import TokenClaims, TokenIssuer


@pytest.fixture(scope="module")
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=4)


@pytest.mark.parametrize(
    "password",
    ["abcd1234", "P@ssw0rd with spaces", "contraseña123", "пароль-секрет-1", "密码密码密码密码", "🔑🔑🔑🔑key1"],
)
def test_hash_round_trip(hasher, password):
    digest = hasher.hash(password)

    assert digest != password
    assert hasher.verify(password, digest)
    assert not hasher.verify(password + "x", digest)
    assert not hasher.verify(password[:-1], digest)


def test_hash_is_salted(hasher):
    first = hasher.hash("abcd1234")
    second = hasher.hash("abcd1234")

    assert first != second
    assert first.startswith("$2b$04$")
    assert hasher.verify("abcd1234", first)
    assert hasher.verify("abcd1234", second)


def test_default_work_factor():
    assert PasswordHasher().rounds == 10


def test_verify_returns_false_for_malformed_digest(hasher):
    assert hasher.verify("abcd1234", "not-a-bcrypt-hash") is False


def test_long_passwords_hash_consistently(hasher):
    password = "a1" * 60
    digest = hasher.hash(password)

    assert hasher.verify(password, digest)


def test_issue_token_contains_claims(token_issuer, settings):
    token = token_issuer.issue(TokenClaims(id="user-1", email="a@b.com", username="ana1"))

    claims = token_issuer.decode(token)
    assert claims["sub"] == "user-1"
    assert claims["id"] == "user-1"
    assert claims["email"] == "a@b.com"
    assert claims["username"] == "ana1"
    assert claims["iss"] == settings.jwt_issuer
    assert claims["exp"] - claims["iat"] == settings.jwt_ttl_seconds


def test_token_signed_with_other_secret_is_rejected(token_issuer):
    other = TokenIssuer("another-secret-0123456789abcdef012345", issuer="test-issuer")
    token = other.issue(TokenClaims(id="user-1", email="a@b.com", username=None))

    with pytest.raises(jwt.InvalidSignatureError):
        token_issuer.decode(token)


def test_expired_token_is_rejected():
    issuer = TokenIssuer(
        "test-secret-0123456789abcdef0123456789", issuer="test-issuer", ttl_seconds=-30
    )
    token = issuer.issue(TokenClaims(id="user-1", email="a@b.com", username=None))

    with pytest.raises(jwt.ExpiredSignatureError):
        issuer.decode(token)


def test_empty_secret_is_refused():
    with pytest.raises(ValueError):
        TokenIssuer("", issuer="test-issuer")
