from __future__ import annotations

from datetime import datetime, timedelta, timezone

import jwt
from pydantic import SecretStr
import pytest

from parkbook.auth import InvalidTokenError, decode_access_token
from parkbook.core.config import settings
from parkbook.principal import ANONYMOUS, WEBHOOK_PRINCIPAL, Principal, UserPrincipal
from tests.utils.tokens import TEST_JWT_SECRET, make_access_token


def test_user_principal_is_scoped():
    principal = UserPrincipal(user_id="u1")

    assert isinstance(principal, Principal)
    assert principal.is_authenticated
    assert not principal.is_admin
    assert not principal.is_elevated
    assert principal.can_read_user("u1")
    assert not principal.can_read_user("u2")


def test_admin_principal_reads_everyone_but_is_not_elevated():
    principal = UserPrincipal(user_id="a1", role="admin")

    assert principal.is_admin
    assert principal.can_read_user("u2")
    assert not principal.is_elevated


def test_webhook_principal_is_elevated_service():
    assert WEBHOOK_PRINCIPAL.principal_type == "service"
    assert WEBHOOK_PRINCIPAL.is_elevated
    assert WEBHOOK_PRINCIPAL.is_authenticated


def test_anonymous_principal():
    assert ANONYMOUS.id == "anonymous"
    assert not ANONYMOUS.is_authenticated
    assert not ANONYMOUS.is_elevated


def test_decode_access_token_returns_claims():
    claims = decode_access_token(make_access_token("user-123", email="runner@example.com"))

    assert claims["sub"] == "user-123"
    assert claims["email"] == "runner@example.com"


@pytest.mark.parametrize(
    "overrides",
    [
        {"expires_in": -300},
        {"aud": "anon"},
        {"secret": "another-secret-0123456789abcdef0123456789"},
    ],
)
def test_decode_access_token_rejects_invalid_tokens(overrides):
    with pytest.raises(InvalidTokenError):
        decode_access_token(make_access_token("user-123", **overrides))


def test_decode_access_token_requires_sub():
    token = jwt.encode(
        {"aud": "authenticated", "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
        TEST_JWT_SECRET,
        algorithm="HS256",
    )
    with pytest.raises(InvalidTokenError):
        decode_access_token(token)


def test_decode_access_token_requires_configured_secret(monkeypatch):
    monkeypatch.setattr(settings, "supabase_jwt_secret", SecretStr(""))

    with pytest.raises(InvalidTokenError):
        decode_access_token(make_access_token("user-123"))
