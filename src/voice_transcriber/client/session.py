"""
Клиентская сессия: авторизация, запись/загрузка аудио, список расшифровок.

Состояния:
- авторизация: anonymous / authenticating / authenticated
- виджет: idle / recording / uploading (только при authenticated)

Переходы проверяются domain.state_machine. Любой сбой источника звука
(MicrophoneUnavailableError, RuntimeError/OSError аудиосервера) оставляет
виджет в idle с сообщением о микрофоне. Состояние защищено локом;
сетевые вызовы выполняются без лока. Счётчик поколений (_generation)
растёт на logout: ответ загрузки, начатой до logout, отбрасывается.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from pathlib import Path

from voice_transcriber.client.api import (
    ApiError,
    SessionExpiredError,
    TranscriberClient,
    UploadFile,
)
from voice_transcriber.client.recorder import AudioSource
from voice_transcriber.client.storage import SessionStore, StoredSession
from voice_transcriber.common.logging import get_client_logger
from voice_transcriber.contracts.http_api import AuthResponse, TranscriptOut
from voice_transcriber.domain.enums import AuthState, WidgetState
from voice_transcriber.domain.state_machine import transition

log = get_client_logger()

RECORDED_FILENAME = "recorded_audio.wav"
ALLOWED_AUDIO_TYPES = {".mp3": "audio/mpeg", ".wav": "audio/wav"}

MSG_INVALID_TYPE = "Invalid file type. Please upload an MP3 or WAV file."
MSG_NO_FILE = "No audio file selected or recorded."
MSG_UPLOAD_FAILED = "Failed to upload and transcribe the audio."
MSG_MIC_FAILED = "Failed to access microphone. Please ensure permissions are granted."
MSG_FETCH_FAILED = "Failed to fetch transcriptions."
MSG_CLEAR_FAILED = "Failed to clear transcription history."
MSG_SESSION_EXPIRED = "Session expired. Please log in again."


class SessionStateError(RuntimeError):
    pass


class RecordingInProgressError(SessionStateError):
    pass


def audio_content_type(path: Path) -> str | None:
    return ALLOWED_AUDIO_TYPES.get(path.suffix.lower())


class ClientSession:
    def __init__(
        self,
        *,
        api: TranscriberClient,
        store: SessionStore,
        recorder_factory: Callable[[], AudioSource],
    ) -> None:
        self.api = api
        self.store = store
        self.recorder_factory = recorder_factory

        self.auth_state = AuthState.anonymous
        self.widget_state = WidgetState.idle
        self.user: StoredSession | None = None
        self.transcripts: list[TranscriptOut] = []
        self.error: str | None = None

        self._lock = threading.RLock()
        self._generation = 0
        self._recorder: AudioSource | None = None

    # =========================================================================
    # ПЕРЕХОДЫ
    # =========================================================================
    def _set_auth(self, target: AuthState) -> None:
        res = transition(self.auth_state, target)
        if not res.ok:
            raise SessionStateError(f"invalid auth transition: {res.reason}")
        self.auth_state = res.state

    def _set_widget(self, target: WidgetState) -> None:
        res = transition(self.widget_state, target)
        if not res.ok:
            raise SessionStateError(f"invalid widget transition: {res.reason}")
        self.widget_state = res.state

    def _require_token(self) -> str:
        if self.auth_state != AuthState.authenticated or self.user is None:
            raise SessionStateError("not authenticated")
        return self.user.token

    @property
    def is_authenticated(self) -> bool:
        return self.auth_state == AuthState.authenticated

    # =========================================================================
    # АВТОРИЗАЦИЯ
    # =========================================================================
    def restore(self) -> bool:
        with self._lock:
            if self.auth_state != AuthState.anonymous:
                return self.is_authenticated
            stored = self.store.load()
            if stored is None:
                return False
            self.user = stored
            self._set_auth(AuthState.authenticated)
            return True

    def _complete_auth(self, resp: AuthResponse) -> None:
        session = StoredSession(
            token=resp.token,
            user_id=resp.id,
            username=resp.username,
            email=resp.email,
        )
        self.store.save(session)
        self.user = session
        self.error = None
        self._set_auth(AuthState.authenticated)

    def _authenticate(self, call: Callable[[], AuthResponse], *, event: str) -> bool:
        with self._lock:
            self._set_auth(AuthState.authenticating)
            generation = self._generation

        try:
            resp = call()
        except ApiError as exc:
            with self._lock:
                self.error = exc.message
                if self.auth_state == AuthState.authenticating:
                    self._set_auth(AuthState.anonymous)
            log.info(f"client_{event}_failed", extra={"payload": {"status_code": exc.status_code}})
            return False

        with self._lock:
            if generation != self._generation or self.auth_state != AuthState.authenticating:
                return False
            self._complete_auth(resp)
        log.info(f"client_{event}_ok", extra={"payload": {"user_id": resp.id}})
        return True

    def login(self, *, email: str, password: str) -> bool:
        return self._authenticate(
            lambda: self.api.login(email=email, password=password),
            event="login",
        )

    def register(self, *, username: str, email: str, password: str) -> bool:
        return self._authenticate(
            lambda: self.api.register(username=username, email=email, password=password),
            event="register",
        )

    def _logout_locked(self) -> None:
        self._generation += 1
        if self._recorder is not None:
            self._recorder.cancel()
            self._recorder = None
        self.store.clear()
        self.user = None
        self.transcripts = []
        self.widget_state = WidgetState.idle
        if self.auth_state != AuthState.anonymous:
            self._set_auth(AuthState.anonymous)

    def logout(self) -> None:
        with self._lock:
            self._logout_locked()
            self.error = None
        log.info("client_logout")

    def _expire(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                return
            self._logout_locked()
            self.error = MSG_SESSION_EXPIRED
        log.info("client_session_expired")

    # =========================================================================
    # ЗАПИСЬ И ЗАГРУЗКА
    # =========================================================================
    def start_recording(self) -> bool:
        with self._lock:
            self._require_token()
            if self.widget_state != WidgetState.idle:
                raise RecordingInProgressError(
                    f"cannot start recording while {self.widget_state.value}"
                )
            recorder = self.recorder_factory()
            try:
                recorder.start()
            except (RuntimeError, OSError) as exc:
                self.error = MSG_MIC_FAILED
                log.warning("client_microphone_failed", extra={"payload": {"err": str(exc)}})
                return False
            self._recorder = recorder
            self._set_widget(WidgetState.recording)
            self.error = None
            return True

    def stop_recording(self) -> TranscriptOut | None:
        with self._lock:
            if self.widget_state != WidgetState.recording or self._recorder is None:
                raise SessionStateError("not recording")
            recorder = self._recorder
            self._recorder = None
            try:
                audio = recorder.stop()
            except (RuntimeError, OSError) as exc:
                self._set_widget(WidgetState.idle)
                self.error = MSG_MIC_FAILED
                log.warning("client_microphone_failed", extra={"payload": {"err": str(exc)}})
                return None
            if not audio:
                self._set_widget(WidgetState.idle)
                self.error = MSG_NO_FILE
                return None
            token = self._require_token()
            self._set_widget(WidgetState.uploading)
            generation = self._generation

        return self._send(
            UploadFile(filename=RECORDED_FILENAME, content=audio, content_type="audio/wav"),
            token=token,
            generation=generation,
        )

    def upload_file(self, path: str | Path) -> TranscriptOut | None:
        path = Path(path)
        with self._lock:
            token = self._require_token()
            content_type = audio_content_type(path)
            if content_type is None:
                self.error = MSG_INVALID_TYPE
                return None
            try:
                content = path.read_bytes()
            except OSError:
                self.error = MSG_NO_FILE
                return None
            if not content:
                self.error = MSG_NO_FILE
                return None
            if self.widget_state != WidgetState.idle:
                raise RecordingInProgressError(
                    f"cannot upload while {self.widget_state.value}"
                )
            self._set_widget(WidgetState.uploading)
            generation = self._generation

        return self._send(
            UploadFile(filename=path.name, content=content, content_type=content_type),
            token=token,
            generation=generation,
        )

    def _send(self, audio: UploadFile, *, token: str, generation: int) -> TranscriptOut | None:
        try:
            transcript = self.api.upload(token=token, audio=audio)
        except SessionExpiredError:
            self._expire(generation)
            return None
        except ApiError as exc:
            with self._lock:
                if generation == self._generation:
                    self._set_widget(WidgetState.idle)
                    self.error = MSG_UPLOAD_FAILED
            log.warning(
                "client_upload_failed",
                extra={"payload": {"status_code": exc.status_code, "err": exc.message}},
            )
            return None

        with self._lock:
            if generation != self._generation:
                log.info("client_upload_result_dropped", extra={"payload": {"id": transcript.id}})
                return None
            self.transcripts.insert(0, transcript)
            self._set_widget(WidgetState.idle)
            self.error = None
        return transcript

    # =========================================================================
    # ИСТОРИЯ
    # =========================================================================
    def refresh(self) -> list[TranscriptOut]:
        with self._lock:
            token = self._require_token()
            generation = self._generation

        try:
            items = self.api.list_transcriptions(token=token)
        except SessionExpiredError:
            self._expire(generation)
            return []
        except ApiError:
            with self._lock:
                self.error = MSG_FETCH_FAILED
                return list(self.transcripts)

        with self._lock:
            if generation == self._generation:
                self.transcripts = items
            return list(self.transcripts)

    def clear_history(self) -> bool:
        with self._lock:
            token = self._require_token()
            generation = self._generation

        try:
            self.api.clear_transcriptions(token=token)
        except SessionExpiredError:
            self._expire(generation)
            return False
        except ApiError:
            with self._lock:
                self.error = MSG_CLEAR_FAILED
            return False

        with self._lock:
            if generation == self._generation:
                self.transcripts = []
                self.error = None
        return True
