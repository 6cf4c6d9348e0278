"""
Загрузка и расшифровка аудио.

POST /upload (multipart, поле "audio"), авторизация: Depends(auth_dep).
MIME тип здесь не проверяется: фильтр mp3/wav делает клиент.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.concurrency import run_in_threadpool

from apps.api_gateway.container import AppContainer
from apps.api_gateway.deps import auth_dep, get_container
from voice_transcriber.common.security import AuthContext
from voice_transcriber.contracts.http_api import ErrorResponse, TranscriptOut
from voice_transcriber.services.upload_pipeline import AudioUpload

router = APIRouter()
AUTH_DEP = Depends(auth_dep)
CONTAINER_DEP = Depends(get_container)
ERROR_RESPONSES = {400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}}


@router.post("/upload", response_model=TranscriptOut, responses=ERROR_RESPONSES)
async def upload_audio(
    audio: UploadFile | None = File(default=None),
    ctx: AuthContext = AUTH_DEP,
    container: AppContainer = CONTAINER_DEP,
) -> TranscriptOut:
    upload: AudioUpload | None = None
    if audio is not None:
        upload = AudioUpload(
            filename=audio.filename,
            content=await audio.read(),
            content_type=audio.content_type,
        )

    # STT и БД блокирующие: уводим в threadpool
    record = await run_in_threadpool(
        container.uploads.process,
        user_id=ctx.user_id,
        upload=upload,
    )
    return TranscriptOut.from_record(record)
