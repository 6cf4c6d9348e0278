from __future__ import annotations

import logging

import pytest

from voice_transcriber.common.errors import NoFileError, ProviderError, StorageError
from voice_transcriber.services.upload_pipeline import AudioUpload, UploadPipeline
from voice_transcriber.storage.staging import TransientStore, safe_extension
from voice_transcriber.stt.base import STTOptions, STTResult


class _FailingProvider:
    name = "failing"

    def __init__(self, staging: TransientStore) -> None:
        self.staging = staging
        self.seen_staged: list = []

    def transcribe(self, *, audio, options, content_type=None) -> STTResult:
        self.seen_staged = self.staging.list_staged()
        raise ProviderError(details={"err": "boom"})


def _pipeline(provider, transcript_store, staging) -> UploadPipeline:
    return UploadPipeline(
        provider=provider,
        transcripts=transcript_store,
        staging=staging,
        options=STTOptions(),
    )


def test_successful_upload_persists_and_cleans_up(provider, transcript_store, staging) -> None:
    pipeline = _pipeline(provider, transcript_store, staging)

    rec = pipeline.process(
        user_id="user-a",
        upload=AudioUpload(filename="clip.wav", content=b"RIFFdata", content_type="audio/wav"),
    )

    assert rec.text == "hello world"
    assert rec.user_id == "user-a"
    assert [r.id for r in transcript_store.list("user-a")] == [rec.id]
    assert staging.list_staged() == []
    assert provider.calls == [(len(b"RIFFdata"), STTOptions())]


@pytest.mark.parametrize(
    "upload",
    [
        None,
        AudioUpload(filename="", content=b"data"),
        AudioUpload(filename="clip.wav", content=b""),
    ],
)
def test_no_file_creates_nothing(upload, provider, transcript_store, staging) -> None:
    pipeline = _pipeline(provider, transcript_store, staging)

    with pytest.raises(NoFileError) as e:
        pipeline.process(user_id="user-a", upload=upload)

    assert e.value.message == "No audio file uploaded"
    assert transcript_store.list("user-a") == []
    assert staging.list_staged() == []
    assert provider.calls == []


def test_provider_failure_still_removes_staged_file(transcript_store, staging) -> None:
    failing = _FailingProvider(staging)
    pipeline = _pipeline(failing, transcript_store, staging)

    with pytest.raises(ProviderError):
        pipeline.process(user_id="user-a", upload=AudioUpload(filename="a.mp3", content=b"ID3"))

    # файл существовал во время вызова провайдера и удалён после
    assert len(failing.seen_staged) == 1
    assert failing.seen_staged[0].name.startswith("audio-")
    assert failing.seen_staged[0].suffix == ".mp3"
    assert staging.list_staged() == []
    assert transcript_store.list("user-a") == []


def test_staged_names_are_unique(staging) -> None:
    p1 = staging.stage(b"1", original_name="a.wav")
    p2 = staging.stage(b"2", original_name="a.wav")
    assert p1 != p2
    assert staging.read(p1) == b"1"
    assert staging.read(p2) == b"2"


def test_safe_extension() -> None:
    assert safe_extension("clip.WAV") == ".wav"
    assert safe_extension("../../etc/passwd") == ""
    assert safe_extension("x.mp3/../../y") == ""
    assert safe_extension(None) == ""


def test_transient_store_refuses_foreign_paths(staging, tmp_path) -> None:
    outside = tmp_path / "outside.wav"
    outside.write_bytes(b"x")
    with pytest.raises(ValueError):
        staging.discard(outside)
    assert outside.exists()


def test_unwritable_upload_dir_is_storage_error(provider, transcript_store, tmp_path) -> None:
    blocker = tmp_path / "recorded"
    blocker.write_bytes(b"not a directory")
    pipeline = _pipeline(provider, transcript_store, TransientStore(blocker))

    with pytest.raises(StorageError) as e:
        pipeline.process(user_id="user-a", upload=AudioUpload(filename="a.wav", content=b"RIFF"))

    assert e.value.message == "Storage unavailable"
    assert e.value.details["stage"] == "staged"
    assert provider.calls == []
    assert transcript_store.list("user-a") == []


def test_failed_write_leaves_no_partial_file(staging) -> None:
    with pytest.raises(TypeError):
        staging.stage("not bytes", original_name="a.wav")
    assert staging.list_staged() == []


def test_stages_logged_in_order(provider, transcript_store, staging, caplog) -> None:
    caplog.set_level(logging.INFO, logger="voice-transcriber")
    pipeline = _pipeline(provider, transcript_store, staging)

    pipeline.process(user_id="user-a", upload=AudioUpload(filename="a.wav", content=b"RIFF"))

    stages = [r.payload["stage"] for r in caplog.records if r.getMessage() == "upload_stage"]
    assert stages == ["received", "staged", "transcribing", "persisted", "cleanup", "responded"]
