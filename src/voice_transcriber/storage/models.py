"""
ORM-модели базы данных.

Назначение:
- пользователи (email уникален)
- расшифровки, у каждой ровно один владелец
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from voice_transcriber.common.time import utc_now


# =============================================================================
# BASE
# =============================================================================
class Base(DeclarativeBase):
    pass


# =============================================================================
# USER
# =============================================================================
class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    username: Mapped[str] = mapped_column(String(150), nullable=False)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(256), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )

    transcripts: Mapped[list[Transcript]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
    )


# =============================================================================
# TRANSCRIPTS
# =============================================================================
class Transcript(Base):
    """
    Текст, полученный из одной загрузки аудио. Не изменяется после создания.
    """

    __tablename__ = "transcripts"
    __table_args__ = (Index("ix_transcripts_user_created", "user_id", "created_at"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False)

    text: Mapped[str] = mapped_column(Text, default="", nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )

    user: Mapped[User] = relationship(back_populates="transcripts")
