"""
HTTP API контракты (Pydantic-модели).

Назначение:
- валидация входа/выхода на уровне FastAPI
- стабильные структуры для клиентов (в т.ч. voice_transcriber.client)
- поля ответа в camelCase: userId, createdAt
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from voice_transcriber.domain.records import AuthResult, TranscriptRecord


# =============================================================================
# ЗАПРОСЫ
# =============================================================================
class RegisterRequest(BaseModel):
    username: str = Field(min_length=1, max_length=150)
    email: str = Field(min_length=3, max_length=320)
    password: str = Field(min_length=1, max_length=1024)


class LoginRequest(BaseModel):
    email: str = Field(min_length=1, max_length=320)
    password: str = Field(min_length=1, max_length=1024)


# =============================================================================
# ОТВЕТЫ
# =============================================================================
class AuthResponse(BaseModel):
    id: str
    username: str
    email: str
    token: str

    @classmethod
    def from_result(cls, result: AuthResult) -> AuthResponse:
        return cls(
            id=result.user.id,
            username=result.user.username,
            email=result.user.email,
            token=result.token,
        )


class TranscriptOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    text: str
    user_id: str = Field(alias="userId")
    created_at: datetime = Field(alias="createdAt")

    @classmethod
    def from_record(cls, record: TranscriptRecord) -> TranscriptOut:
        return cls(
            id=record.id,
            text=record.text,
            user_id=record.user_id,
            created_at=record.created_at,
        )


class ClearHistoryResponse(BaseModel):
    message: str = "Transcription history cleared"
    deleted: int = 0


class ErrorResponse(BaseModel):
    code: str
    error: str


class MessageResponse(BaseModel):
    code: str
    message: str
