"""
Сервисный слой: учётные данные пользователей.

Назначение:
- регистрация (email уникален, хранится только хэш пароля)
- вход по email + паролю
- проверка токена и разрешение владельца для Auth Gate
"""

from __future__ import annotations

import secrets

from sqlalchemy.exc import IntegrityError

from voice_transcriber.common.errors import (
    DuplicateEmailError,
    InvalidCredentialsError,
    TokenInvalidError,
    ValidationError,
)
from voice_transcriber.common.ids import new_user_id
from voice_transcriber.common.logging import get_project_logger
from voice_transcriber.common.metrics import record_auth_event
from voice_transcriber.common.security import TokenService, hash_password, verify_password
from voice_transcriber.domain.records import AuthResult, UserRecord
from voice_transcriber.storage.db import Database
from voice_transcriber.storage.models import User
from voice_transcriber.storage.repositories import UserRepository

log = get_project_logger()


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


class CredentialStore:
    def __init__(
        self,
        *,
        database: Database,
        tokens: TokenService,
        hash_iterations: int = 310_000,
    ) -> None:
        self.database = database
        self.tokens = tokens
        self.hash_iterations = hash_iterations
        # для неизвестного email проверяем пароль против этого хэша:
        # время ответа не зависит от того, есть ли такой пользователь
        self._dummy_hash = hash_password(secrets.token_urlsafe(16), iterations=hash_iterations)

    def register(self, *, username: str, email: str, password: str) -> AuthResult:
        username = (username or "").strip()
        email = normalize_email(email)
        if not username or not email or not password:
            raise ValidationError("Username, email and password are required")

        try:
            with self.database.session() as s:
                repo = UserRepository(s)
                if repo.get_by_email(email) is not None:
                    raise DuplicateEmailError()
                user = repo.add(
                    User(
                        id=new_user_id(),
                        username=username,
                        email=email,
                        password_hash=hash_password(password, iterations=self.hash_iterations),
                    )
                )
                record = UserRecord.from_model(user)
        except DuplicateEmailError:
            record_auth_event(event="register", ok=False)
            raise
        except IntegrityError as e:
            # параллельная регистрация с тем же email упёрлась в unique constraint
            record_auth_event(event="register", ok=False)
            raise DuplicateEmailError() from e

        record_auth_event(event="register", ok=True)
        log.info("user_registered", extra={"payload": {"user_id": record.id}})
        return AuthResult(user=record, token=self.tokens.issue(record.id))

    def login(self, *, email: str, password: str) -> AuthResult:
        email = normalize_email(email)
        with self.database.session() as s:
            user = UserRepository(s).get_by_email(email) if email else None
            encoded = user.password_hash if user is not None else self._dummy_hash
            ok = verify_password(password or "", encoded) and user is not None
            record = UserRecord.from_model(user) if ok else None

        if record is None:
            # одно и то же сообщение для неизвестного email и неверного пароля
            record_auth_event(event="login", ok=False)
            raise InvalidCredentialsError()

        record_auth_event(event="login", ok=True)
        log.info("user_logged_in", extra={"payload": {"user_id": record.id}})
        return AuthResult(user=record, token=self.tokens.issue(record.id))

    def authenticate(self, token: str) -> UserRecord:
        """
        Проверяет подпись/срок токена и возвращает владельца.
        Бросает TokenExpiredError / TokenInvalidError.
        """
        claims = self.tokens.verify(token)
        with self.database.session() as s:
            user = UserRepository(s).get(claims.user_id)
            if user is None:
                raise TokenInvalidError("User not found")
            return UserRecord.from_model(user)
