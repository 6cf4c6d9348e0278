"""
Сборка зависимостей API.

БД, STT провайдер и временное хранилище создаются один раз при старте
и передаются в сервисы явно. В тестах контейнер собирается из подделок.
"""

from __future__ import annotations

from dataclasses import dataclass

from voice_transcriber.common.config import Settings
from voice_transcriber.common.security import TokenService
from voice_transcriber.services.auth_service import CredentialStore
from voice_transcriber.services.transcript_service import TranscriptStore
from voice_transcriber.services.upload_pipeline import UploadPipeline
from voice_transcriber.storage.db import Database
from voice_transcriber.storage.staging import TransientStore
from voice_transcriber.stt.base import STTOptions, STTProvider
from voice_transcriber.stt.factory import build_stt_options, build_stt_provider


@dataclass
class AppContainer:
    database: Database
    credentials: CredentialStore
    transcripts: TranscriptStore
    uploads: UploadPipeline


def build_container(
    settings: Settings,
    *,
    database: Database | None = None,
    provider: STTProvider | None = None,
    staging: TransientStore | None = None,
    options: STTOptions | None = None,
) -> AppContainer:
    database = database or Database(settings.database_dsn)
    tokens = TokenService(
        secret=settings.jwt_secret,
        ttl_sec=settings.token_ttl_sec,
        algorithm=settings.jwt_algorithm,
        leeway_sec=settings.jwt_clock_skew_sec,
    )
    transcripts = TranscriptStore(database)
    uploads = UploadPipeline(
        provider=provider or build_stt_provider(settings),
        transcripts=transcripts,
        staging=staging or TransientStore(settings.upload_dir),
        options=options or build_stt_options(settings),
    )
    return AppContainer(
        database=database,
        credentials=CredentialStore(
            database=database,
            tokens=tokens,
            hash_iterations=int(settings.password_hash_iterations),
        ),
        transcripts=transcripts,
        uploads=uploads,
    )
