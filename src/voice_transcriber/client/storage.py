"""
Локальное хранение клиентской сессии: токен + снимок профиля.

Файл создаётся с правами 0600 (только владелец), каталог с 0700.
"""

from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass
from pathlib import Path

from voice_transcriber.common.logging import get_client_logger

log = get_client_logger()


@dataclass(frozen=True)
class StoredSession:
    token: str
    user_id: str
    username: str
    email: str


class SessionStore:
    def __init__(self, path: str | Path) -> None:
        self.path = Path(path).expanduser()

    def load(self) -> StoredSession | None:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        try:
            data = json.loads(raw)
            return StoredSession(
                token=str(data["token"]),
                user_id=str(data["user_id"]),
                username=str(data["username"]),
                email=str(data["email"]),
            )
        except (ValueError, KeyError, TypeError):
            log.warning("session_file_corrupted", extra={"payload": {"path": str(self.path)}})
            return None

    def save(self, session: StoredSession) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True, mode=0o700)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        fd = os.open(tmp, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(asdict(session), f, ensure_ascii=False)
        os.chmod(tmp, 0o600)
        os.replace(tmp, self.path)

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)
