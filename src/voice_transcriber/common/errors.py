"""
Единые ошибки и коды ошибок.

Назначение:
- предсказуемые коды для HTTP ответов и логов
- единый стиль исключений по проекту
- безопасные сообщения: причина сбоя провайдера/БД остаётся в логах сервера
"""

from __future__ import annotations

from dataclasses import dataclass


class ErrCode:
    # Общие
    VALIDATION = "validation"
    UNAUTHORIZED = "unauthorized"

    # Загрузка / учётные данные
    NO_FILE = "no_file"
    DUPLICATE_EMAIL = "duplicate_email"
    INVALID_CREDENTIALS = "invalid_credentials"

    # Токены
    TOKEN_EXPIRED = "token_expired"
    TOKEN_INVALID = "token_invalid"

    # Провайдеры
    STT_PROVIDER_ERROR = "stt_provider_error"

    # Инфра/хранилища
    STORAGE_ERROR = "storage_error"


@dataclass
class AppError(Exception):
    """
    Базовая ошибка приложения.
    - code: стабильный код ошибки
    - message: безопасное сообщение
    - details: доп. данные (без секретов/PII)
    """

    code: str
    message: str
    details: dict | None = None

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.code}: {self.message}"


class ValidationError(AppError):
    def __init__(
        self,
        message: str = "Validation failed",
        details: dict | None = None,
        *,
        code: str = ErrCode.VALIDATION,
    ) -> None:
        super().__init__(code, message, details)


class NoFileError(ValidationError):
    def __init__(self, message: str = "No audio file uploaded", details: dict | None = None) -> None:
        super().__init__(message, details, code=ErrCode.NO_FILE)


class DuplicateEmailError(ValidationError):
    def __init__(self, message: str = "User already exists", details: dict | None = None) -> None:
        super().__init__(message, details, code=ErrCode.DUPLICATE_EMAIL)


class InvalidCredentialsError(ValidationError):
    def __init__(
        self, message: str = "Invalid email or password", details: dict | None = None
    ) -> None:
        super().__init__(message, details, code=ErrCode.INVALID_CREDENTIALS)


class UnauthorizedError(AppError):
    def __init__(
        self,
        message: str = "Not authorized",
        details: dict | None = None,
        *,
        code: str = ErrCode.UNAUTHORIZED,
    ) -> None:
        super().__init__(code, message, details)


class TokenExpiredError(UnauthorizedError):
    def __init__(self, message: str = "Token expired", details: dict | None = None) -> None:
        super().__init__(message, details, code=ErrCode.TOKEN_EXPIRED)


class TokenInvalidError(UnauthorizedError):
    def __init__(self, message: str = "Token invalid", details: dict | None = None) -> None:
        super().__init__(message, details, code=ErrCode.TOKEN_INVALID)


class ProviderError(AppError):
    def __init__(
        self,
        message: str = "Failed to process audio file",
        details: dict | None = None,
        *,
        code: str = ErrCode.STT_PROVIDER_ERROR,
    ) -> None:
        super().__init__(code, message, details)


class StorageError(AppError):
    def __init__(self, message: str = "Storage unavailable", details: dict | None = None) -> None:
        super().__init__(ErrCode.STORAGE_ERROR, message, details)
