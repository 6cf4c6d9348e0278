"""
Доменные записи (отвязаны от ORM-сессии).

Сервисы возвращают эти объекты наружу, чтобы роутеры и клиент
не зависели от жизненного цикла SQLAlchemy Session.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from voice_transcriber.common.time import as_utc


@dataclass(frozen=True)
class UserRecord:
    id: str
    username: str
    email: str
    created_at: datetime

    @classmethod
    def from_model(cls, m: Any) -> UserRecord:
        return cls(
            id=m.id,
            username=m.username,
            email=m.email,
            created_at=as_utc(m.created_at),
        )


@dataclass(frozen=True)
class TranscriptRecord:
    id: int
    text: str
    user_id: str
    created_at: datetime

    @classmethod
    def from_model(cls, m: Any) -> TranscriptRecord:
        return cls(
            id=m.id,
            text=m.text,
            user_id=m.user_id,
            created_at=as_utc(m.created_at),
        )


@dataclass(frozen=True)
class AuthResult:
    user: UserRecord
    token: str
