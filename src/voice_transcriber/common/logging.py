"""
Логирование транскрибатора.

API:
- stdout, JSON по умолчанию (LOG_FORMAT=text для локальной отладки)
- в каждой записи service и env, поля события: extra={"payload": {...}}

CLI:
- stderr (stdout занят выводом команд), text, по умолчанию только WARNING+
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any, TextIO

from voice_transcriber.common.config import get_settings

PROJECT_LOGGER = "voice-transcriber"
CLIENT_LOGGER = f"{PROJECT_LOGGER}.client"

_TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _iso(ts: float) -> str:
    # время создания записи, а не форматирования
    return datetime.fromtimestamp(ts, UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class JsonFormatter(logging.Formatter):
    def __init__(self, *, service: str, env: str) -> None:
        super().__init__()
        self.service = service
        self.env = env

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": _iso(record.created),
            "level": record.levelname,
            "service": self.service,
            "env": self.env,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        extra_payload = getattr(record, "payload", None)
        if isinstance(extra_payload, dict):
            payload["payload"] = extra_payload
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


class TextPayloadFormatter(logging.Formatter):
    """Текстовый формат: payload дописывается в конец строки."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        extra_payload = getattr(record, "payload", None)
        if isinstance(extra_payload, dict) and extra_payload:
            line += " " + json.dumps(extra_payload, ensure_ascii=False, default=str)
        return line


def _level(name: str | None, default: int) -> int:
    value = getattr(logging, (name or "").upper(), None)
    return value if isinstance(value, int) else default


def build_formatter(log_format: str | None = None) -> logging.Formatter:
    s = get_settings()
    if (log_format or s.log_format or "").lower() == "text":
        return TextPayloadFormatter(fmt=_TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    return JsonFormatter(service=s.service_name, env=s.app_env)


def _install(handler_stream: TextIO, level: int, formatter: logging.Formatter) -> None:
    root = logging.getLogger()
    root.setLevel(level)

    # Не плодим хэндлеры при повторном вызове
    if root.handlers:
        return

    handler = logging.StreamHandler(handler_stream)
    handler.setLevel(level)
    handler.setFormatter(formatter)
    root.addHandler(handler)


def setup_logging() -> None:
    s = get_settings()
    level = _level(s.log_level, logging.INFO)
    _install(sys.stdout, level, build_formatter())

    logging.getLogger("uvicorn.error").setLevel(level)
    logging.getLogger("uvicorn.access").setLevel(level)


def setup_client_logging(*, verbose: bool = False) -> None:
    if logging.getLogger().handlers:
        # логирование уже настроено встраивающим кодом
        return
    level = logging.INFO if verbose else logging.WARNING
    _install(sys.stderr, level, build_formatter("text"))


def get_project_logger(name: str = PROJECT_LOGGER) -> logging.Logger:
    return logging.getLogger(name)


def get_client_logger() -> logging.Logger:
    """
    Отдельный логгер для клиентской части (CLI / запись с микрофона).
    """
    return logging.getLogger(CLIENT_LOGGER)
