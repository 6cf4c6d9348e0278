"""
Временное хранилище загрузок ("recorded").

Файл живёт только между приёмом и расшифровкой. Имена уникальны
(timestamp + случайный суффикс), поэтому параллельные загрузки не
перезаписывают друг друга.
"""

from __future__ import annotations

import re
from pathlib import Path

from voice_transcriber.common.ids import new_upload_name

_EXT_RE = re.compile(r"^\.[A-Za-z0-9]{1,10}$")


def safe_extension(filename: str | None) -> str:
    # защита от path traversal: берём только безопасное расширение
    suffix = Path(filename or "").suffix
    return suffix.lower() if _EXT_RE.match(suffix) else ""


class TransientStore:
    def __init__(self, base_dir: str | Path) -> None:
        self.base_dir = Path(base_dir).resolve()

    def _check(self, path: Path) -> Path:
        resolved = path.resolve()
        if resolved.parent != self.base_dir:
            raise ValueError("path outside transient directory")
        return resolved

    def stage(self, data: bytes, *, original_name: str | None, field: str = "audio") -> Path:
        """Сохранить bytes под новым уникальным именем и вернуть путь."""
        self.base_dir.mkdir(parents=True, exist_ok=True)
        path = self.base_dir / new_upload_name(field, safe_extension(original_name))
        # "x": не перезаписываем чужой файл даже при совпадении имени
        f = path.open("xb")
        try:
            with f:
                f.write(data)
        except BaseException:
            # файл создан нами, недописанный не оставляем
            path.unlink(missing_ok=True)
            raise
        return path

    def read(self, path: Path) -> bytes:
        return self._check(path).read_bytes()

    def discard(self, path: Path) -> None:
        self._check(path).unlink(missing_ok=True)

    def list_staged(self) -> list[Path]:
        if not self.base_dir.exists():
            return []
        return sorted(p for p in self.base_dir.iterdir() if p.is_file())
