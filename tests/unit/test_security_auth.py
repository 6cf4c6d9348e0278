from __future__ import annotations

from datetime import timedelta

import pytest

from voice_transcriber.common.errors import TokenExpiredError, TokenInvalidError
from voice_transcriber.common.security import (
    TokenService,
    extract_bearer,
    hash_password,
    verify_password,
)
from voice_transcriber.common.time import utc_now

jwt = pytest.importorskip("jwt")


def test_password_hash_roundtrip() -> None:
    encoded = hash_password("s3cret", iterations=1000)
    assert encoded.startswith("pbkdf2_sha256$1000$")
    assert "s3cret" not in encoded
    assert verify_password("s3cret", encoded) is True
    assert verify_password("wrong", encoded) is False


def test_password_hash_is_salted() -> None:
    assert hash_password("same", iterations=1000) != hash_password("same", iterations=1000)


@pytest.mark.parametrize("encoded", ["", "plain", "md5$1$a$b", "pbkdf2_sha256$x$a$b"])
def test_verify_password_rejects_malformed_hash(encoded: str) -> None:
    assert verify_password("anything", encoded) is False


def test_extract_bearer() -> None:
    assert extract_bearer("Bearer abc") == "abc"
    assert extract_bearer("bearer abc ") == "abc"
    assert extract_bearer("Token abc") is None
    assert extract_bearer("Bearer ") is None
    assert extract_bearer(None) is None


def test_token_issue_and_verify() -> None:
    svc = TokenService(secret="k", ttl_sec=3600)
    claims = svc.verify(svc.issue("user-1"))
    assert claims.user_id == "user-1"
    assert claims.expires_at - claims.issued_at == timedelta(hours=1)


def test_default_ttl_is_seven_days() -> None:
    svc = TokenService(secret="k")
    claims = svc.verify(svc.issue("user-1"))
    assert claims.expires_at - claims.issued_at == timedelta(days=7)


def test_expired_token_rejected() -> None:
    svc = TokenService(secret="k", ttl_sec=60, leeway_sec=0)
    token = svc.issue("user-1", now=utc_now() - timedelta(hours=1))
    with pytest.raises(TokenExpiredError):
        svc.verify(token)


def test_token_signed_with_other_secret_rejected() -> None:
    token = TokenService(secret="other").issue("user-1")
    with pytest.raises(TokenInvalidError):
        TokenService(secret="k").verify(token)


def test_token_without_exp_rejected() -> None:
    token = jwt.encode({"sub": "user-1", "iat": 1}, "k", algorithm="HS256")
    with pytest.raises(TokenInvalidError):
        TokenService(secret="k").verify(str(token))


@pytest.mark.parametrize("token", ["", "not-a-jwt", "a.b.c"])
def test_malformed_token_rejected(token: str) -> None:
    with pytest.raises(TokenInvalidError):
        TokenService(secret="k").verify(token)


def test_empty_secret_not_allowed() -> None:
    with pytest.raises(ValueError):
        TokenService(secret="")
