"""
Выбор STT провайдера по STT_PROVIDER.
"""

from __future__ import annotations

from voice_transcriber.common.config import Settings

from .base import STTOptions, STTProvider
from .deepgram import DeepgramProvider
from .mock import MockSTTProvider


def build_stt_options(s: Settings) -> STTOptions:
    return STTOptions(
        model=s.stt_model,
        language=s.stt_language,
        punctuate=bool(s.stt_punctuate),
        smart_format=bool(s.stt_smart_format),
    )


def build_stt_provider(s: Settings) -> STTProvider:
    provider = (s.stt_provider or "").strip().lower()

    if provider == "mock":
        return MockSTTProvider(text=s.mock_stt_text)
    if provider == "deepgram":
        return DeepgramProvider(
            api_key=s.deepgram_api_key,
            api_base=s.deepgram_api_base,
            timeout_sec=s.stt_timeout_sec,
        )
    if provider == "whisper_local":
        # faster-whisper/PyAV тяжёлые: импортируем только когда провайдер выбран
        from .whisper_local import WhisperLocalProvider

        return WhisperLocalProvider(
            model_size=s.whisper_model_size,
            device=s.whisper_device,
            compute_type=s.whisper_compute_type,
            vad_filter=s.whisper_vad_filter,
            beam_size=s.whisper_beam_size,
        )

    raise ValueError(f"Unsupported STT_PROVIDER={provider}")
