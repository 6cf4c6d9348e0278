from __future__ import annotations

import logging
from types import SimpleNamespace

import pytest
from fastapi import HTTPException
from starlette.requests import Request

from apps.api_gateway.deps import auth_dep


def _make_request(*, path: str, container, method: str = "GET") -> Request:
    scope = {
        "type": "http",
        "asgi": {"version": "3.0"},
        "http_version": "1.1",
        "method": method,
        "scheme": "http",
        "path": path,
        "raw_path": path.encode("utf-8"),
        "query_string": b"",
        "headers": [],
        "client": ("127.0.0.1", 12345),
        "server": ("testserver", 80),
        "app": SimpleNamespace(state=SimpleNamespace(container=container)),
    }
    return Request(scope)


def test_auth_dep_logs_allow(caplog, container) -> None:
    res = container.credentials.register(username="alice", email="a@x.io", password="pw")

    caplog.set_level(logging.INFO, logger="voice-transcriber")
    req = _make_request(path="/upload", method="POST", container=container)
    ctx = auth_dep(request=req, authorization=f"Bearer {res.token}")

    assert ctx.user_id == res.user.id
    assert ctx.email == "a@x.io"
    rec = next(r for r in caplog.records if r.msg == "security_audit_allow")
    assert rec.payload["endpoint"] == "/upload"
    assert rec.payload["method"] == "POST"
    assert rec.payload["reason"] == "auth_ok"
    assert rec.payload["subject"] == res.user.id


def test_auth_dep_logs_deny_without_token(caplog, container) -> None:
    caplog.set_level(logging.INFO, logger="voice-transcriber")
    req = _make_request(path="/transcriptions", container=container)
    with pytest.raises(HTTPException) as e:
        auth_dep(request=req, authorization=None)
    assert e.value.status_code == 401
    assert e.value.headers == {"WWW-Authenticate": "Bearer"}

    rec = next(r for r in caplog.records if r.msg == "security_audit_deny")
    assert rec.payload["endpoint"] == "/transcriptions"
    assert rec.payload["status_code"] == 401
    assert rec.payload["error_code"] == "unauthorized"
    assert rec.payload["client_ip"] == "127.0.0.1"


def test_auth_dep_logs_deny_for_garbage_token(caplog, container) -> None:
    caplog.set_level(logging.INFO, logger="voice-transcriber")
    req = _make_request(path="/transcriptions", method="DELETE", container=container)
    with pytest.raises(HTTPException) as e:
        auth_dep(request=req, authorization="Bearer not-a-token")
    assert e.value.status_code == 401
    assert e.value.detail["code"] == "token_invalid"

    denies = [r for r in caplog.records if r.msg == "security_audit_deny"]
    assert denies
    assert denies[-1].payload["method"] == "DELETE"
