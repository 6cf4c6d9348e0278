from __future__ import annotations

import pytest

from apps.api_gateway.main import _cors_params, _enforce_secrets
from voice_transcriber.common.config import DEFAULT_JWT_SECRET, get_settings


@pytest.fixture()
def cors_settings():
    s = get_settings()
    keys = ["app_env", "cors_allowed_origins", "cors_allow_credentials", "jwt_secret"]
    snapshot = {k: getattr(s, k) for k in keys}
    try:
        yield s
    finally:
        for k, v in snapshot.items():
            setattr(s, k, v)


def test_prod_rejects_wildcard_origin(cors_settings) -> None:
    cors_settings.app_env = "prod"
    cors_settings.cors_allowed_origins = "*"
    cors_settings.cors_allow_credentials = True

    with pytest.raises(RuntimeError):
        _cors_params()


def test_wildcard_disables_credentials(cors_settings) -> None:
    cors_settings.app_env = "dev"
    cors_settings.cors_allowed_origins = "*"
    cors_settings.cors_allow_credentials = True

    origins, allow_credentials = _cors_params()
    assert origins == ["*"]
    assert allow_credentials is False


def test_csv_origins_keep_credentials(cors_settings) -> None:
    cors_settings.app_env = "prod"
    cors_settings.cors_allowed_origins = "http://localhost:5173, https://transcribe.example.org"
    cors_settings.cors_allow_credentials = True

    origins, allow_credentials = _cors_params()
    assert origins == ["http://localhost:5173", "https://transcribe.example.org"]
    assert allow_credentials is True


def test_prod_rejects_default_jwt_secret(cors_settings) -> None:
    cors_settings.app_env = "prod"
    cors_settings.jwt_secret = DEFAULT_JWT_SECRET
    with pytest.raises(RuntimeError):
        _enforce_secrets()

    cors_settings.jwt_secret = "rotated-secret"
    _enforce_secrets()
