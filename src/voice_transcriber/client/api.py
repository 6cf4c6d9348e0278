"""
HTTP клиент к API транскрибатора (requests).

Ошибки сервера превращаются в ApiError с человекочитаемым сообщением;
401 выделен в SessionExpiredError, чтобы сессия могла разлогиниться.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, TypeVar

import requests
from pydantic import BaseModel, ValidationError

from voice_transcriber.contracts.http_api import AuthResponse, ClearHistoryResponse, TranscriptOut

M = TypeVar("M", bound=BaseModel)


class ApiError(RuntimeError):
    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class SessionExpiredError(ApiError):
    pass


def normalize_base_url(base_url: str) -> str:
    normalized = (base_url or "").strip().rstrip("/")
    if not normalized:
        raise ValueError("base url is empty")
    return normalized


def error_message(response: requests.Response, fallback: str) -> str:
    try:
        body = response.json()
    except ValueError:
        return fallback
    if not isinstance(body, dict):
        return fallback
    detail = body.get("detail")
    if isinstance(detail, dict):
        body = detail
    for key in ("message", "error"):
        value = body.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return fallback


def parse_body(model: type[M], data: Any, fallback: str) -> M:
    # 2xx с неожиданным телом: для вызывающего это такой же сбой, как 5xx
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise ApiError(fallback) from exc


@dataclass
class UploadFile:
    filename: str
    content: bytes
    content_type: str


class TranscriberClient:
    def __init__(self, base_url: str, *, timeout: float = 120.0) -> None:
        self.base_url = normalize_base_url(base_url)
        self.timeout = timeout

    def _request(
        self,
        method: str,
        path: str,
        *,
        token: str | None = None,
        fallback: str,
        json_payload: dict[str, Any] | None = None,
        files: dict[str, tuple[str, bytes, str]] | None = None,
    ) -> Any:
        headers: dict[str, str] = {}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        try:
            response = requests.request(
                method.upper(),
                f"{self.base_url}{path}",
                json=json_payload,
                files=files,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise ApiError(fallback) from exc

        status_code = int(response.status_code)
        if status_code == 401 and token:
            raise SessionExpiredError(error_message(response, fallback), status_code=401)
        if status_code >= 400:
            raise ApiError(error_message(response, fallback), status_code=status_code)
        try:
            return response.json()
        except ValueError as exc:
            raise ApiError(fallback, status_code=status_code) from exc

    def register(self, *, username: str, email: str, password: str) -> AuthResponse:
        data = self._request(
            "POST",
            "/api/auth/register",
            json_payload={"username": username, "email": email, "password": password},
            fallback="An error occurred during registration",
        )
        return parse_body(AuthResponse, data, "An error occurred during registration")

    def login(self, *, email: str, password: str) -> AuthResponse:
        data = self._request(
            "POST",
            "/api/auth/login",
            json_payload={"email": email, "password": password},
            fallback="An error occurred during login",
        )
        return parse_body(AuthResponse, data, "An error occurred during login")

    def upload(self, *, token: str, audio: UploadFile) -> TranscriptOut:
        data = self._request(
            "POST",
            "/upload",
            token=token,
            files={"audio": (audio.filename, audio.content, audio.content_type)},
            fallback="Failed to upload and transcribe the audio.",
        )
        return parse_body(TranscriptOut, data, "Failed to upload and transcribe the audio.")

    def list_transcriptions(self, *, token: str) -> list[TranscriptOut]:
        data = self._request(
            "GET",
            "/transcriptions",
            token=token,
            fallback="Failed to fetch transcriptions.",
        )
        if not isinstance(data, list):
            raise ApiError("Failed to fetch transcriptions.")
        return [parse_body(TranscriptOut, item, "Failed to fetch transcriptions.") for item in data]

    def clear_transcriptions(self, *, token: str) -> ClearHistoryResponse:
        data = self._request(
            "DELETE",
            "/transcriptions",
            token=token,
            fallback="Failed to clear transcription history.",
        )
        return parse_body(ClearHistoryResponse, data, "Failed to clear transcription history.")
