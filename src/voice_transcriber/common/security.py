"""
Утилиты безопасности и авторизации.

- хэширование паролей: PBKDF2-SHA256 с солью, формат
  pbkdf2_sha256$<iterations>$<salt_b64>$<digest_b64>
- сессионные токены: JWT (HS256) с фиксированным TTL, сервер их не хранит
- разбор заголовка Authorization: Bearer <token>
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt

from .errors import TokenExpiredError, TokenInvalidError
from .time import utc_now

_HASH_SCHEME = "pbkdf2_sha256"
_SALT_BYTES = 16


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def hash_password(password: str, *, iterations: int = 310_000) -> str:
    """
    Необратимый хэш пароля со случайной солью.
    """
    salt = secrets.token_bytes(_SALT_BYTES)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)
    return f"{_HASH_SCHEME}${iterations}${_b64(salt)}${_b64(digest)}"


def verify_password(password: str, encoded: str) -> bool:
    try:
        scheme, iterations_raw, salt_b64, digest_b64 = (encoded or "").split("$")
        if scheme != _HASH_SCHEME:
            return False
        iterations = int(iterations_raw)
        salt = base64.b64decode(salt_b64)
        expected = base64.b64decode(digest_b64)
    except (ValueError, TypeError):
        return False

    actual = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)
    return hmac.compare_digest(actual, expected)


def extract_bearer(authorization: str | None) -> str | None:
    if not authorization:
        return None
    prefix = "bearer "
    if authorization.lower().startswith(prefix):
        return authorization[len(prefix) :].strip() or None
    return None


@dataclass(frozen=True)
class TokenClaims:
    user_id: str
    issued_at: datetime
    expires_at: datetime


@dataclass(frozen=True)
class AuthContext:
    """
    Пользователь, от имени которого выполняется защищённый запрос.
    """

    user_id: str
    username: str
    email: str


class TokenService:
    """
    Выпуск и проверка подписанных сессионных токенов.
    """

    def __init__(
        self,
        *,
        secret: str,
        ttl_sec: int = 7 * 24 * 3600,
        algorithm: str = "HS256",
        leeway_sec: int = 30,
    ) -> None:
        if not secret:
            raise ValueError("token secret is empty")
        self._secret = secret
        self.ttl = timedelta(seconds=max(1, int(ttl_sec)))
        self.algorithm = algorithm
        self.leeway = max(0, int(leeway_sec))

    def issue(self, user_id: str, *, now: datetime | None = None) -> str:
        issued_at = now or utc_now()
        payload: dict[str, Any] = {
            "sub": user_id,
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + self.ttl).timestamp()),
        }
        return str(jwt.encode(payload, self._secret, algorithm=self.algorithm))

    def verify(self, token: str) -> TokenClaims:
        if not token:
            raise TokenInvalidError("Token missing")
        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                leeway=self.leeway,
                options={"require": ["sub", "iat", "exp"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise TokenExpiredError() from e
        except jwt.PyJWTError as e:
            raise TokenInvalidError(details={"err": str(e)[:200]}) from e

        sub = claims.get("sub")
        if not isinstance(sub, str) or not sub:
            raise TokenInvalidError("Token subject missing")
        return TokenClaims(
            user_id=sub,
            issued_at=datetime.fromtimestamp(int(claims["iat"]), tz=UTC),
            expires_at=datetime.fromtimestamp(int(claims["exp"]), tz=UTC),
        )
