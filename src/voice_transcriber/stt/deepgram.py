"""
Deepgram STT (pre-recorded API).

Что делает:
- POST <api_base>/listen с телом = bytes аудио
- опции распознавания передаются query-параметрами
- из ответа берётся results.channels[0].alternatives[0].transcript

Ретраев нет: ошибка сети/HTTP/формата ответа сразу становится ProviderError.
"""

from __future__ import annotations

from typing import Any

import requests

from voice_transcriber.common.errors import ProviderError
from voice_transcriber.common.logging import get_project_logger

from .base import STTOptions, STTProvider, STTResult

log = get_project_logger()


def _bool_param(value: bool) -> str:
    return "true" if value else "false"


def build_query_params(options: STTOptions) -> dict[str, str]:
    return {
        "model": options.model,
        "language": options.language,
        "punctuate": _bool_param(options.punctuate),
        "smart_format": _bool_param(options.smart_format),
    }


def extract_transcript(payload: dict[str, Any]) -> tuple[str, float | None]:
    try:
        alternative = payload["results"]["channels"][0]["alternatives"][0]
    except (KeyError, IndexError, TypeError) as e:
        raise ProviderError(details={"err": "unexpected_response_shape"}) from e

    text = alternative.get("transcript")
    if not isinstance(text, str):
        raise ProviderError(details={"err": "transcript_missing"})
    confidence = alternative.get("confidence")
    return text, float(confidence) if isinstance(confidence, int | float) else None


class DeepgramProvider(STTProvider):
    name = "deepgram"

    def __init__(
        self,
        *,
        api_key: str | None,
        api_base: str = "https://api.deepgram.com/v1",
        timeout_sec: float = 60,
    ) -> None:
        self.api_key = (api_key or "").strip()
        self.api_base = api_base.rstrip("/")
        self.timeout_sec = timeout_sec

    def transcribe(
        self,
        *,
        audio: bytes,
        options: STTOptions,
        content_type: str | None = None,
    ) -> STTResult:
        if not self.api_key:
            raise ProviderError(details={"err": "DEEPGRAM_API_KEY is not configured"})

        headers = {
            "Authorization": f"Token {self.api_key}",
            "Content-Type": content_type or "application/octet-stream",
        }
        try:
            resp = requests.post(
                f"{self.api_base}/listen",
                params=build_query_params(options),
                headers=headers,
                data=audio,
                timeout=self.timeout_sec,
            )
        except requests.RequestException as e:
            raise ProviderError(details={"err": str(e)[:200]}) from e

        if resp.status_code >= 400:
            body_preview = (resp.text or "").strip().replace("\n", " ")[:300]
            log.warning(
                "deepgram_http_error",
                extra={"payload": {"status_code": resp.status_code, "body": body_preview}},
            )
            raise ProviderError(
                details={"status_code": resp.status_code, "body": body_preview},
            )

        try:
            payload = resp.json()
        except ValueError as e:
            raise ProviderError(details={"err": "invalid_json"}) from e

        text, confidence = extract_transcript(payload)
        return STTResult(text=text, confidence=confidence)
