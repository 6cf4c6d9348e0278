"""
Базовый интерфейс STT (Speech-to-Text).

Назначение:
- единый контракт для всех провайдеров: bytes аудио + опции -> текст
- любой сбой провайдера наружу выходит как ProviderError
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class STTOptions:
    model: str = "nova-3"
    language: str = "en-IN"
    punctuate: bool = True
    smart_format: bool = True


@dataclass
class STTResult:
    text: str
    confidence: float | None = None


class STTProvider(Protocol):
    name: str

    def transcribe(
        self,
        *,
        audio: bytes,
        options: STTOptions,
        content_type: str | None = None,
    ) -> STTResult: ...
