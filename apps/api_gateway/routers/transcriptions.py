from __future__ import annotations

from fastapi import APIRouter, Depends

from apps.api_gateway.container import AppContainer
from apps.api_gateway.deps import auth_dep, get_container
from voice_transcriber.common.security import AuthContext
from voice_transcriber.contracts.http_api import ClearHistoryResponse, TranscriptOut

router = APIRouter()
AUTH_DEP = Depends(auth_dep)
CONTAINER_DEP = Depends(get_container)


@router.get("/transcriptions", response_model=list[TranscriptOut])
def list_transcriptions(
    ctx: AuthContext = AUTH_DEP,
    container: AppContainer = CONTAINER_DEP,
) -> list[TranscriptOut]:
    return [TranscriptOut.from_record(r) for r in container.transcripts.list(ctx.user_id)]


@router.delete("/transcriptions", response_model=ClearHistoryResponse)
def clear_transcriptions(
    ctx: AuthContext = AUTH_DEP,
    container: AppContainer = CONTAINER_DEP,
) -> ClearHistoryResponse:
    deleted = container.transcripts.delete_all(ctx.user_id)
    return ClearHistoryResponse(deleted=deleted)
