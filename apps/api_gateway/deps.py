"""
FastAPI Depends.

Сюда выносим:
- доступ к контейнеру зависимостей (app.state.container)
- Auth Gate: проверка Bearer токена и разрешение владельца запроса
"""

from __future__ import annotations

from fastapi import Header, HTTPException, Request, status

from apps.api_gateway.container import AppContainer
from voice_transcriber.common.errors import ErrCode, UnauthorizedError
from voice_transcriber.common.logging import get_project_logger
from voice_transcriber.common.metrics import record_auth_event
from voice_transcriber.common.security import AuthContext, extract_bearer

log = get_project_logger()


def get_container(request: Request) -> AppContainer:
    return request.app.state.container


def _request_meta(request: Request | None) -> tuple[str, str, str | None]:
    if request is None:
        return "unknown", "UNKNOWN", None
    endpoint = request.url.path
    method = request.method
    client_ip = request.client.host if request.client else None
    return endpoint, method, client_ip


def _audit_allow(*, request: Request | None, ctx: AuthContext) -> None:
    endpoint, method, client_ip = _request_meta(request)
    log.info(
        "security_audit_allow",
        extra={
            "payload": {
                "endpoint": endpoint,
                "method": method,
                "subject": ctx.user_id,
                "reason": "auth_ok",
                "client_ip": client_ip,
            }
        },
    )


def _audit_deny(
    *,
    request: Request | None,
    status_code: int,
    reason: str,
    error_code: str,
) -> None:
    endpoint, method, client_ip = _request_meta(request)
    log.warning(
        "security_audit_deny",
        extra={
            "payload": {
                "endpoint": endpoint,
                "method": method,
                "status_code": status_code,
                "reason": reason,
                "error_code": error_code,
                "client_ip": client_ip,
            }
        },
    )


def authenticate_request(
    *,
    container: AppContainer,
    authorization: str | None,
    request: Request | None,
) -> AuthContext:
    try:
        token = extract_bearer(authorization)
        if not token:
            raise UnauthorizedError("Not authorized, no token")
        user = container.credentials.authenticate(token)
    except UnauthorizedError as e:
        record_auth_event(event="gate", ok=False)
        _audit_deny(
            request=request,
            status_code=status.HTTP_401_UNAUTHORIZED,
            reason=e.message,
            error_code=e.code,
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"code": e.code or ErrCode.UNAUTHORIZED, "message": e.message},
            headers={"WWW-Authenticate": "Bearer"},
        ) from e

    record_auth_event(event="gate", ok=True)
    return AuthContext(user_id=user.id, username=user.username, email=user.email)


def auth_dep(
    request: Request,
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> AuthContext:
    """
    Auth Gate для защищённых HTTP роутов: хэндлер не выполняется без валидного токена.
    """
    ctx = authenticate_request(
        container=get_container(request),
        authorization=authorization,
        request=request,
    )
    _audit_allow(request=request, ctx=ctx)
    return ctx
