"""
Генерация идентификаторов.

Назначение:
- user_id
- имена временных файлов загрузки (без коллизий между параллельными запросами)
"""

from __future__ import annotations

import secrets
import time
import uuid


def new_user_id() -> str:
    """Идентификатор пользователя (hex UUIDv4, 32 символа)."""
    return uuid.uuid4().hex


def new_upload_name(prefix: str = "audio", ext: str = "") -> str:
    """
    Имя временного файла загрузки.
    Формат: <prefix>-<epoch ms>-<rand><ext>
    """
    ts = int(time.time() * 1000)
    rnd = secrets.randbelow(10**9)
    return f"{prefix}-{ts}-{rnd}{ext}"
