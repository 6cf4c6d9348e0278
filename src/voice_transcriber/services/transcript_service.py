"""
Сервисный слой: история расшифровок пользователя.
"""

from __future__ import annotations

from voice_transcriber.common.logging import get_project_logger
from voice_transcriber.domain.records import TranscriptRecord
from voice_transcriber.storage.db import Database
from voice_transcriber.storage.models import Transcript
from voice_transcriber.storage.repositories import TranscriptRepository

log = get_project_logger()


class TranscriptStore:
    def __init__(self, database: Database) -> None:
        self.database = database

    def create(self, *, user_id: str, text: str) -> TranscriptRecord:
        with self.database.session() as s:
            t = TranscriptRepository(s).add(Transcript(user_id=user_id, text=text or ""))
            record = TranscriptRecord.from_model(t)
        log.info(
            "transcript_created",
            extra={"payload": {"user_id": user_id, "transcript_id": record.id}},
        )
        return record

    def list(self, user_id: str) -> list[TranscriptRecord]:
        """Расшифровки пользователя, новые первыми."""
        with self.database.session() as s:
            rows = TranscriptRepository(s).list_by_user(user_id)
            return [TranscriptRecord.from_model(t) for t in rows]

    def delete_all(self, user_id: str) -> int:
        """Необратимо удаляет все расшифровки пользователя (и только его)."""
        with self.database.session() as s:
            deleted = TranscriptRepository(s).delete_by_user(user_id)
        log.info(
            "transcripts_cleared",
            extra={"payload": {"user_id": user_id, "deleted": deleted}},
        )
        return deleted
