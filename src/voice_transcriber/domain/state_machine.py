"""
Машины состояний.

Назначение:
- допустимые переходы клиентской сессии (авторизация и виджет записи)
- предсказуемое поведение при недопустимом переходе
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TypeVar

from .enums import AuthState, WidgetState

S = TypeVar("S", AuthState, WidgetState)


# =============================================================================
# РЕЗУЛЬТАТ ПЕРЕХОДА
# =============================================================================
@dataclass
class TransitionResult:
    ok: bool
    state: AuthState | WidgetState
    reason: str | None = None


# =============================================================================
# ПЕРЕХОДЫ КЛИЕНТА
# =============================================================================
_AUTH_TRANSITIONS: dict[AuthState, set[AuthState]] = {
    AuthState.anonymous: {AuthState.authenticating, AuthState.authenticated},
    AuthState.authenticating: {AuthState.authenticated, AuthState.anonymous},
    AuthState.authenticated: {AuthState.anonymous},
}

_WIDGET_TRANSITIONS: dict[WidgetState, set[WidgetState]] = {
    WidgetState.idle: {WidgetState.recording, WidgetState.uploading},
    WidgetState.recording: {WidgetState.uploading, WidgetState.idle},
    WidgetState.uploading: {WidgetState.idle},
}


def transition(current: S, target: S) -> TransitionResult:
    """
    Правила перехода:
    - anonymous → authenticated только при восстановлении сохранённой сессии
    - logout (→ anonymous) допустим из любого состояния авторизации
    - recording → idle: запись отменена (logout)
    - повторный вход в то же состояние недопустим (например, второй старт записи)
    """
    table = _AUTH_TRANSITIONS if isinstance(current, AuthState) else _WIDGET_TRANSITIONS
    if target in table.get(current, set()):
        return TransitionResult(ok=True, state=target)
    return TransitionResult(
        ok=False,
        state=current,
        reason=f"{current.value}->{target.value}",
    )
