from __future__ import annotations

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import text

from apps.api_gateway.main import create_app
from voice_transcriber.common.errors import ProviderError
from voice_transcriber.common.time import utc_now
from voice_transcriber.storage.staging import TransientStore


@pytest.fixture()
def client(container):
    return TestClient(create_app(container))


def _register(client, email: str = "a@x.io") -> dict:
    r = client.post(
        "/api/auth/register",
        json={"username": "alice", "email": email, "password": "pw"},
    )
    assert r.status_code == 201, r.text
    return r.json()


def _auth(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def _upload(client, token: str, *, name: str = "clip.wav", data: bytes = b"RIFFdata"):
    return client.post(
        "/upload",
        headers=_auth(token),
        files={"audio": (name, data, "audio/wav")},
    )


def test_health(client) -> None:
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"ok": True}


def test_metrics_exposed(client) -> None:
    client.get("/health")
    r = client.get("/metrics")
    assert r.status_code == 200
    assert "transcriber_requests_total" in r.text


def test_register_and_login(client) -> None:
    body = _register(client)
    assert set(body) == {"id", "username", "email", "token"}
    assert body["email"] == "a@x.io"

    r = client.post("/api/auth/login", json={"email": "a@x.io", "password": "pw"})
    assert r.status_code == 200
    assert r.json()["id"] == body["id"]


def test_register_duplicate_email(client) -> None:
    _register(client)
    r = client.post(
        "/api/auth/register",
        json={"username": "bob", "email": "a@x.io", "password": "other"},
    )
    assert r.status_code == 400
    assert r.json() == {"code": "duplicate_email", "message": "User already exists"}


def test_login_wrong_password(client) -> None:
    _register(client)
    r = client.post("/api/auth/login", json={"email": "a@x.io", "password": "nope"})
    assert r.status_code == 400
    assert r.json()["message"] == "Invalid email or password"


def test_register_missing_fields_is_422(client) -> None:
    r = client.post("/api/auth/register", json={"email": "a@x.io"})
    assert r.status_code == 422


def test_upload_returns_transcript(client, staging) -> None:
    user = _register(client)
    r = _upload(client, user["token"])
    assert r.status_code == 200, r.text
    body = r.json()
    assert set(body) == {"id", "text", "userId", "createdAt"}
    assert body["text"] == "hello world"
    assert body["userId"] == user["id"]
    assert staging.list_staged() == []


def test_upload_without_file(client, provider, staging) -> None:
    user = _register(client)
    r = client.post(
        "/upload",
        headers=_auth(user["token"]),
        files={"not_audio": ("x.txt", b"x", "text/plain")},
    )
    assert r.status_code == 400
    assert r.json() == {"code": "no_file", "error": "No audio file uploaded"}
    assert provider.calls == []
    assert staging.list_staged() == []

    listed = client.get("/transcriptions", headers=_auth(user["token"]))
    assert listed.json() == []


def test_upload_provider_failure(client, container, staging) -> None:
    user = _register(client)

    def fail(**kwargs):
        raise ProviderError(details={"err": "upstream 502"})

    container.uploads.provider.transcribe = fail
    r = _upload(client, user["token"])
    assert r.status_code == 500
    assert r.json() == {"code": "stt_provider_error", "error": "Failed to process audio file"}
    assert "upstream" not in r.text
    assert staging.list_staged() == []


def test_list_and_clear_scoped_to_user(client) -> None:
    alice = _register(client, "a@x.io")
    bob = _register(client, "b@x.io")
    _upload(client, alice["token"])
    _upload(client, alice["token"])
    _upload(client, bob["token"])

    rows = client.get("/transcriptions", headers=_auth(alice["token"])).json()
    assert len(rows) == 2
    assert {r["userId"] for r in rows} == {alice["id"]}
    assert rows[0]["id"] > rows[1]["id"]

    r = client.delete("/transcriptions", headers=_auth(alice["token"]))
    assert r.status_code == 200
    assert r.json() == {"message": "Transcription history cleared", "deleted": 2}
    assert client.get("/transcriptions", headers=_auth(alice["token"])).json() == []
    assert len(client.get("/transcriptions", headers=_auth(bob["token"])).json()) == 1


@pytest.mark.parametrize(
    ("method", "path"),
    [("post", "/upload"), ("get", "/transcriptions"), ("delete", "/transcriptions")],
)
def test_protected_routes_reject_bad_tokens(client, container, provider, method, path) -> None:
    user = _register(client)
    container.transcripts.create(user_id=user["id"], text="keep me")
    expired = container.credentials.tokens.issue(user["id"], now=utc_now() - timedelta(days=8))

    for headers in ({}, _auth("garbage"), _auth(expired), {"Authorization": user["token"]}):
        kwargs = {"headers": headers}
        if method == "post":
            kwargs["files"] = {"audio": ("clip.wav", b"RIFF", "audio/wav")}
        r = getattr(client, method)(path, **kwargs)
        assert r.status_code == 401
        assert r.headers["www-authenticate"] == "Bearer"

    # хэндлер не выполнялся: нет побочных эффектов
    assert provider.calls == []
    assert [t.text for t in container.transcripts.list(user["id"])] == ["keep me"]


def test_upload_dir_failure_is_json_500(client, container, provider, tmp_path) -> None:
    user = _register(client)
    blocker = tmp_path / "blocker"
    blocker.write_bytes(b"x")
    container.uploads.staging = TransientStore(blocker)

    r = _upload(client, user["token"])
    assert r.status_code == 500
    assert r.json() == {"code": "storage_error", "error": "Storage unavailable"}
    assert provider.calls == []


def test_database_failure_is_json_500(client, container) -> None:
    user = _register(client)
    with container.database.engine.begin() as conn:
        conn.execute(text("DROP TABLE transcripts"))

    r = client.get("/transcriptions", headers=_auth(user["token"]))
    assert r.status_code == 500
    assert r.json() == {"code": "storage_error", "error": "Storage unavailable"}
    assert "transcripts" not in r.text
