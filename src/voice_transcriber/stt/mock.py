from __future__ import annotations

from voice_transcriber.stt.base import STTOptions, STTProvider, STTResult


class MockSTTProvider(STTProvider):
    """Заглушка STT: возвращает предсказуемый текст для проверки пайплайна end-to-end."""

    name = "mock"

    def __init__(self, text: str = "mock transcript") -> None:
        self.text = text
        self.calls: list[tuple[int, STTOptions]] = []

    def transcribe(
        self,
        *,
        audio: bytes,
        options: STTOptions,
        content_type: str | None = None,
    ) -> STTResult:
        self.calls.append((len(audio), options))
        return STTResult(text=self.text)
