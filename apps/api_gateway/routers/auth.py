"""
HTTP роуты авторизации.

- POST /api/auth/register
- POST /api/auth/login

Ошибки (дубликат email, неверные учётные данные) отдаёт общий
обработчик AppError: {"code", "message"}.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from apps.api_gateway.container import AppContainer
from apps.api_gateway.deps import get_container
from voice_transcriber.contracts.http_api import (
    AuthResponse,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
)

router = APIRouter(prefix="/api/auth")
CONTAINER_DEP = Depends(get_container)
ERROR_RESPONSES = {400: {"model": MessageResponse}}


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
)
def register(req: RegisterRequest, container: AppContainer = CONTAINER_DEP) -> AuthResponse:
    result = container.credentials.register(
        username=req.username,
        email=req.email,
        password=req.password,
    )
    return AuthResponse.from_result(result)


@router.post("/login", response_model=AuthResponse, responses=ERROR_RESPONSES)
def login(req: LoginRequest, container: AppContainer = CONTAINER_DEP) -> AuthResponse:
    result = container.credentials.login(email=req.email, password=req.password)
    return AuthResponse.from_result(result)
