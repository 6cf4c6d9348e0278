"""
Утилиты времени.

Назначение:
- текущее время всегда timezone-aware (UTC)
- SQLite возвращает naive datetime: считаем его UTC
"""

from __future__ import annotations

from datetime import UTC, datetime


def utc_now() -> datetime:
    """
    Текущее время в UTC (datetime).
    """
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)

