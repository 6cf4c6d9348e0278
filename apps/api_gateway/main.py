"""
API Gateway (FastAPI).

Функции:
- /health
- /metrics
- /api/auth/register, /api/auth/login
- /upload (multipart "audio") -> STT -> расшифровка в БД
- /transcriptions (GET список, DELETE очистка истории)

Архитектурно:
- зависимости (БД, STT провайдер, временное хранилище) собираются в AppContainer
  и лежат в app.state.container
- ошибки AppError переводятся в JSON единым обработчиком
"""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from apps.api_gateway.container import AppContainer, build_container
from apps.api_gateway.routers.auth import router as auth_router
from apps.api_gateway.routers.transcriptions import router as transcriptions_router
from apps.api_gateway.routers.uploads import router as uploads_router
from voice_transcriber.common.config import DEFAULT_JWT_SECRET, get_settings, is_prod_env
from voice_transcriber.common.errors import (
    AppError,
    ProviderError,
    StorageError,
    UnauthorizedError,
    ValidationError,
)
from voice_transcriber.common.logging import get_project_logger, setup_logging
from voice_transcriber.common.metrics import setup_metrics_endpoint

log = get_project_logger()


def _parse_origins(raw: str) -> list[str]:
    origins = [o.strip() for o in (raw or "").split(",") if o.strip()]
    return origins or ["*"]


def _cors_params() -> tuple[list[str], bool]:
    settings = get_settings()
    allow_origins = _parse_origins(settings.cors_allowed_origins)
    allow_credentials = bool(settings.cors_allow_credentials)

    if is_prod_env(settings.app_env) and "*" in allow_origins:
        raise RuntimeError("CORS wildcard '*' запрещён в APP_ENV=prod")

    # '*' нельзя использовать вместе с credentials=true
    if "*" in allow_origins:
        allow_credentials = False

    return allow_origins, allow_credentials


def _enforce_secrets() -> None:
    settings = get_settings()
    if is_prod_env(settings.app_env) and settings.jwt_secret == DEFAULT_JWT_SECRET:
        raise RuntimeError("JWT_SECRET по умолчанию запрещён в APP_ENV=prod")


def _status_for(exc: AppError) -> int:
    if isinstance(exc, ValidationError):
        return 400
    if isinstance(exc, UnauthorizedError):
        return 401
    return 500


def _error_body(request: Request, exc: AppError) -> dict[str, Any]:
    # auth роуты отвечают {"message"}, роуты расшифровок {"error"}
    key = "message" if request.url.path.startswith("/api/auth") else "error"
    return {"code": exc.code, key: exc.message}


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        status_code = _status_for(exc)
        payload = {
            "endpoint": request.url.path,
            "method": request.method,
            "code": exc.code,
            "status_code": status_code,
        }
        if isinstance(exc, ProviderError | StorageError):
            # причина видна только в логах сервера
            log.error("request_failed", extra={"payload": {**payload, "details": exc.details}})
        else:
            log.info("request_rejected", extra={"payload": payload})

        headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
        return JSONResponse(
            status_code=status_code,
            content=_error_body(request, exc),
            headers=headers,
        )


def create_app(container: AppContainer | None = None) -> FastAPI:
    settings = get_settings()
    _enforce_secrets()
    app = FastAPI(title="Voice Transcriber", version="0.1.0")
    allow_origins, allow_credentials = _cors_params()

    # CORS (настраивается через ENV; в prod wildcard запрещён)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow_origins,
        allow_methods=["*"],
        allow_headers=["*"],
        allow_credentials=allow_credentials,
    )

    setup_metrics_endpoint(app, service=settings.service_name)
    _register_error_handlers(app)

    app.state.container = container or build_container(settings)

    @app.get("/health")
    def health() -> dict[str, Any]:
        return {"ok": True}

    @app.on_event("startup")
    def startup_create_tables() -> None:
        # Автосоздание таблиц в dev (чтобы проект стартовал без ручных миграций)
        if not is_prod_env(settings.app_env):
            app.state.container.database.create_all()
        log.info("db_ready")

    @app.on_event("shutdown")
    def shutdown_dispose() -> None:
        app.state.container.database.dispose()

    app.include_router(auth_router)
    app.include_router(uploads_router)
    app.include_router(transcriptions_router)

    return app


def run() -> None:
    import uvicorn

    settings = get_settings()
    uvicorn.run(app, host=settings.api_host, port=int(settings.api_port))


setup_logging()

app = create_app()


if __name__ == "__main__":
    run()
