"""
Пайплайн загрузки: файл -> временный файл -> STT -> расшифровка в БД.

Стадии (линейно, выход только по ошибке):
received -> staged -> transcribing -> persisted -> cleanup -> responded

Временный файл удаляется на любом пути выхода, в том числе при ошибке
провайдера. Ретраев и компенсаций нет: ошибка сразу уходит вызывающему.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from voice_transcriber.common.errors import AppError, NoFileError, ProviderError, StorageError
from voice_transcriber.common.logging import get_project_logger
from voice_transcriber.common.metrics import record_upload_result, track_stage_latency
from voice_transcriber.domain.enums import UploadStage
from voice_transcriber.domain.records import TranscriptRecord
from voice_transcriber.storage.staging import TransientStore
from voice_transcriber.stt.base import STTOptions, STTProvider

from .transcript_service import TranscriptStore

log = get_project_logger()


@dataclass(frozen=True)
class AudioUpload:
    filename: str | None
    content: bytes
    content_type: str | None = None


class UploadPipeline:
    def __init__(
        self,
        *,
        provider: STTProvider,
        transcripts: TranscriptStore,
        staging: TransientStore,
        options: STTOptions,
    ) -> None:
        self.provider = provider
        self.transcripts = transcripts
        self.staging = staging
        self.options = options

    def _log_stage(self, stage: UploadStage, user_id: str, **payload) -> None:
        log.info(
            "upload_stage",
            extra={"payload": {"stage": stage.value, "user_id": user_id, **payload}},
        )

    def process(self, *, user_id: str, upload: AudioUpload | None) -> TranscriptRecord:
        # received
        if upload is None or not upload.filename or not upload.content:
            record_upload_result("no_file")
            raise NoFileError()
        self._log_stage(
            UploadStage.received,
            user_id,
            filename=upload.filename,
            size=len(upload.content),
        )

        # staged
        try:
            with track_stage_latency(UploadStage.staged.value):
                staged_path = self.staging.stage(upload.content, original_name=upload.filename)
        except OSError as e:
            record_upload_result("storage_error")
            log.error(
                "upload_staging_failed",
                extra={"payload": {"user_id": user_id, "err": str(e)}},
            )
            raise StorageError(details={"stage": UploadStage.staged.value, "err": str(e)}) from e
        self._log_stage(UploadStage.staged, user_id, path=str(staged_path))

        try:
            record = self._transcribe_and_persist(
                user_id=user_id,
                staged_path=staged_path,
                content_type=upload.content_type,
            )
        except ProviderError as e:
            record_upload_result("provider_error")
            log.error(
                "upload_provider_failed",
                extra={
                    "payload": {
                        "user_id": user_id,
                        "provider": getattr(self.provider, "name", "unknown"),
                        "details": e.details or {},
                    }
                },
            )
            raise
        except StorageError:
            record_upload_result("storage_error")
            raise
        except AppError:
            record_upload_result("failed")
            raise
        finally:
            # cleanup: гарантированно на любом пути
            with track_stage_latency(UploadStage.cleanup.value):
                self.staging.discard(staged_path)
            self._log_stage(UploadStage.cleanup, user_id, path=str(staged_path))

        record_upload_result("ok")
        self._log_stage(UploadStage.responded, user_id, transcript_id=record.id)
        return record

    def _transcribe_and_persist(
        self,
        *,
        user_id: str,
        staged_path: Path,
        content_type: str | None,
    ) -> TranscriptRecord:
        try:
            audio = self.staging.read(staged_path)
        except OSError as e:
            raise StorageError(details={"stage": UploadStage.staged.value, "err": str(e)}) from e

        self._log_stage(UploadStage.transcribing, user_id, provider=self.provider.name)
        with track_stage_latency(UploadStage.transcribing.value):
            result = self.provider.transcribe(
                audio=audio,
                options=self.options,
                content_type=content_type,
            )

        with track_stage_latency(UploadStage.persisted.value):
            record = self.transcripts.create(user_id=user_id, text=result.text)
        self._log_stage(UploadStage.persisted, user_id, transcript_id=record.id)
        return record
