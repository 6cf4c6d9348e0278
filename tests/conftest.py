from __future__ import annotations

import os
import tempfile

# До импорта настроек: тесты не ходят в Deepgram и не пишут в ./data
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DATABASE_DSN", "sqlite://")
os.environ.setdefault("STT_PROVIDER", "mock")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="transcriber-upload-"))

import pytest  # noqa: E402

from apps.api_gateway.container import AppContainer, build_container  # noqa: E402
from voice_transcriber.common.config import get_settings  # noqa: E402
from voice_transcriber.common.security import TokenService  # noqa: E402
from voice_transcriber.services.auth_service import CredentialStore  # noqa: E402
from voice_transcriber.services.transcript_service import TranscriptStore  # noqa: E402
from voice_transcriber.storage.db import Database  # noqa: E402
from voice_transcriber.storage.staging import TransientStore  # noqa: E402
from voice_transcriber.stt.base import STTOptions  # noqa: E402
from voice_transcriber.stt.mock import MockSTTProvider  # noqa: E402

TEST_SECRET = "test-secret"


@pytest.fixture()
def database():
    db = Database("sqlite://")
    db.create_all()
    try:
        yield db
    finally:
        db.dispose()


@pytest.fixture()
def tokens() -> TokenService:
    return TokenService(secret=TEST_SECRET, ttl_sec=7 * 24 * 3600)


@pytest.fixture()
def credentials(database, tokens) -> CredentialStore:
    # мало итераций: тесты не проверяют стойкость хэша
    return CredentialStore(database=database, tokens=tokens, hash_iterations=1000)


@pytest.fixture()
def transcript_store(database) -> TranscriptStore:
    return TranscriptStore(database)


@pytest.fixture()
def staging(tmp_path) -> TransientStore:
    return TransientStore(tmp_path / "recorded")


@pytest.fixture()
def provider() -> MockSTTProvider:
    return MockSTTProvider(text="hello world")


@pytest.fixture()
def container(database, staging, provider) -> AppContainer:
    s = get_settings()
    snapshot = (s.jwt_secret, s.password_hash_iterations)
    s.jwt_secret = TEST_SECRET
    s.password_hash_iterations = 1000
    try:
        yield build_container(
            s,
            database=database,
            provider=provider,
            staging=staging,
            options=STTOptions(),
        )
    finally:
        s.jwt_secret, s.password_hash_iterations = snapshot
