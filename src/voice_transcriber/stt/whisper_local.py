"""
Локальный STT на базе faster-whisper (офлайн альтернатива внешнему провайдеру).

Что делает:
- принимает bytes загруженного файла (mp3/wav/webm)
- декодирует через PyAV в моно float32 16kHz
- запускает Whisper модель локально
- language-подсказка вида "en-IN" сводится к коду языка "en"

Опции punctuate/smart_format игнорируются: Whisper расставляет пунктуацию сам.
"""

from __future__ import annotations

import io

import av  # PyAV (ffmpeg bindings)
import numpy as np
from faster_whisper import WhisperModel

from voice_transcriber.common.errors import ProviderError

from .base import STTOptions, STTProvider, STTResult


def _decode_audio_to_float32(audio_bytes: bytes, target_sr: int = 16000) -> np.ndarray:
    """
    Декодирует произвольный аудио-контейнер/кодек в моно float32 16kHz.
    """
    container = av.open(io.BytesIO(audio_bytes))
    stream = next(s for s in container.streams if s.type == "audio")
    resampler = av.audio.resampler.AudioResampler(format="fltp", layout="mono", rate=target_sr)

    samples: list[np.ndarray] = []
    for frame in container.decode(stream):
        for out in resampler.resample(frame):
            arr = out.to_ndarray()
            if arr.ndim == 2:
                arr = arr[0]
            samples.append(arr.astype(np.float32))

    if not samples:
        return np.zeros((0,), dtype=np.float32)

    return np.concatenate(samples)


def whisper_language(language: str | None) -> str | None:
    code = (language or "").strip().lower()
    if not code or code == "auto":
        return None
    return code.split("-")[0]


class WhisperLocalProvider(STTProvider):
    name = "whisper_local"

    def __init__(
        self,
        *,
        model_size: str = "small",
        device: str = "cpu",
        compute_type: str = "int8",
        vad_filter: bool = True,
        beam_size: int = 1,
    ) -> None:
        self.model = WhisperModel(
            model_size,
            device=device,
            compute_type=compute_type,
        )
        self.vad_filter = vad_filter
        self.beam_size = beam_size

    def transcribe(
        self,
        *,
        audio: bytes,
        options: STTOptions,
        content_type: str | None = None,
    ) -> STTResult:
        try:
            wav = _decode_audio_to_float32(audio, target_sr=16000)
            if wav.size == 0:
                return STTResult(text="", confidence=None)

            segments, _info = self.model.transcribe(
                wav,
                language=whisper_language(options.language),
                vad_filter=self.vad_filter,
                beam_size=self.beam_size,
            )
            text_parts = [seg.text.strip() for seg in segments if seg.text]
        except (av.error.FFmpegError, StopIteration, RuntimeError) as e:
            raise ProviderError(details={"err": str(e)[:200]}) from e

        text = " ".join(t for t in text_parts if t).strip()
        return STTResult(text=text, confidence=None)
