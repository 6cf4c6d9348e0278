"""
Запись с микрофона (soundcard + soundfile).

Захват идёт в фоновом потоке блоками; stop() останавливает поток и отдаёт
WAV (bytes), cancel() останавливает и выбрасывает записанное.
"""

from __future__ import annotations

import io
import threading
from typing import Any, Protocol

from voice_transcriber.common.logging import get_client_logger

log = get_client_logger()

_MISSING_DEPS = "microphone recording requires soundcard + soundfile (pip install voice-transcriber[client])"


class MicrophoneUnavailableError(RuntimeError):
    pass


class AudioSource(Protocol):
    def start(self) -> None: ...

    def stop(self) -> bytes: ...

    def cancel(self) -> None: ...


def _device_name(device: Any) -> str:
    return str(getattr(device, "name", "") or "").strip()


def select_microphone(sc_module: Any, input_device: str | None) -> Any:
    microphones = list(sc_module.all_microphones())
    if not microphones:
        raise MicrophoneUnavailableError("No microphone available")

    if input_device:
        needle = input_device.strip().lower()
        for mic in microphones:
            if _device_name(mic).lower() == needle:
                return mic
        for mic in microphones:
            if needle and needle in _device_name(mic).lower():
                return mic
        available = ", ".join(sorted(filter(None, (_device_name(m) for m in microphones))))
        raise MicrophoneUnavailableError(
            f"Requested input device '{input_device}' not found. Available: {available or 'none'}"
        )

    default_mic = sc_module.default_microphone()
    if default_mic is None:
        raise MicrophoneUnavailableError("No microphone available")
    return default_mic


class MicrophoneRecorder:
    def __init__(
        self,
        *,
        sample_rate: int = 16000,
        block_size: int = 1024,
        input_device: str | None = None,
    ) -> None:
        self.sample_rate = sample_rate
        self.block_size = block_size
        self.input_device = input_device
        self.stop_event = threading.Event()
        self.error: Exception | None = None
        self._blocks: list[Any] = []
        self._channels = 1
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        if self._thread is not None:
            raise RuntimeError("recorder already started")
        try:
            import soundcard as sc
        except ImportError as exc:
            raise MicrophoneUnavailableError(_MISSING_DEPS) from exc
        except Exception as exc:
            # без аудиосервера soundcard падает уже на импорте
            raise MicrophoneUnavailableError(str(exc)) from exc
        try:
            mic = select_microphone(sc, self.input_device)
        except MicrophoneUnavailableError:
            raise
        except Exception as exc:
            raise MicrophoneUnavailableError(str(exc)) from exc

        self.stop_event.clear()
        self._blocks = []
        self.error = None
        self._thread = threading.Thread(target=self._capture, args=(mic,), daemon=True)
        self._thread.start()
        log.info("recording_started", extra={"payload": {"device": _device_name(mic)}})

    def _capture(self, mic: Any) -> None:
        try:
            with mic.recorder(samplerate=self.sample_rate, blocksize=self.block_size) as recorder:
                self._channels = len(recorder.channelmap)
                while not self.stop_event.is_set():
                    self._blocks.append(recorder.record(numframes=self.block_size))
        except Exception as exc:
            self.error = exc

    def _join(self) -> None:
        self.stop_event.set()
        if self._thread is not None:
            self._thread.join()
        self._thread = None

    def stop(self) -> bytes:
        self._join()
        if self.error is not None:
            raise MicrophoneUnavailableError(str(self.error)) from self.error

        try:
            import numpy as np
            import soundfile as sf
        except (ImportError, OSError) as exc:
            # OSError: soundfile без системной libsndfile
            raise MicrophoneUnavailableError(_MISSING_DEPS) from exc

        blocks, self._blocks = self._blocks, []
        try:
            frames = (
                np.concatenate(blocks)
                if blocks
                else np.zeros((0, self._channels), dtype="float32")
            )
            buf = io.BytesIO()
            sf.write(buf, frames, self.sample_rate, format="WAV", subtype="PCM_16")
        except Exception as exc:
            raise MicrophoneUnavailableError(str(exc)) from exc
        log.info(
            "recording_stopped",
            extra={"payload": {"frames": int(len(frames)), "sample_rate": self.sample_rate}},
        )
        return buf.getvalue()

    def cancel(self) -> None:
        self._join()
        self._blocks = []
        log.info("recording_cancelled")
