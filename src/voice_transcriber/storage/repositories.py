"""
Репозитории (DAO слой).

Правила:
- Никакой бизнес-логики
- Только CRUD и запросы
- Любой запрос к расшифровкам фильтруется по владельцу
"""

from __future__ import annotations

from sqlalchemy import delete, desc, select
from sqlalchemy.orm import Session

from .models import Transcript, User


# =============================================================================
# USER REPOSITORY
# =============================================================================
class UserRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, user_id: str) -> User | None:
        return self.session.get(User, user_id)

    def get_by_email(self, email: str) -> User | None:
        return self.session.execute(select(User).where(User.email == email)).scalar_one_or_none()

    def add(self, user: User) -> User:
        self.session.add(user)
        self.session.flush()
        return user


# =============================================================================
# TRANSCRIPT REPOSITORY
# =============================================================================
class TranscriptRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, transcript: Transcript) -> Transcript:
        self.session.add(transcript)
        self.session.flush()
        return transcript

    def list_by_user(self, user_id: str) -> list[Transcript]:
        return list(
            self.session.execute(
                select(Transcript)
                .where(Transcript.user_id == user_id)
                .order_by(desc(Transcript.created_at), desc(Transcript.id))
            ).scalars()
        )

    def delete_by_user(self, user_id: str) -> int:
        result = self.session.execute(delete(Transcript).where(Transcript.user_id == user_id))
        return int(result.rowcount or 0)
