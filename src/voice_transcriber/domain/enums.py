"""
Доменные перечисления (enum).

Используются во всей системе:
- стадии пайплайна загрузки
- состояния клиентской сессии и виджета записи
"""

from __future__ import annotations

import enum


class UploadStage(str, enum.Enum):
    """
    Стадии обработки загруженного аудио (линейно, без ветвлений кроме ошибок).
    """

    received = "received"
    staged = "staged"
    transcribing = "transcribing"
    persisted = "persisted"
    cleanup = "cleanup"
    responded = "responded"


class AuthState(str, enum.Enum):
    """
    Состояние авторизации клиента.
    """

    anonymous = "anonymous"
    authenticating = "authenticating"
    authenticated = "authenticated"


class WidgetState(str, enum.Enum):
    """
    Состояние виджета записи/загрузки (только при authenticated).
    """

    idle = "idle"
    recording = "recording"
    uploading = "uploading"
