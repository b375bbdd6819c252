from __future__ import annotations

import sys
from pathlib import Path

import pytest


_REPO_ROOT = Path(__file__).resolve().parents[1]
_SRC = _REPO_ROOT / "src"
if _SRC.exists():
    sys.path.insert(0, str(_SRC))

from form_builder_service import http, realtime  # noqa: E402
from form_builder_service.cache import ai_response_cache  # noqa: E402
from form_builder_service.store import MemoryStore, set_store  # noqa: E402

_CLEARED_ENV = (
    "FORM_STORE",
    "CRON_SECRET",
    "RESEND_API_KEY",
    "GOOGLE_CLIENT_ID",
    "GOOGLE_CLIENT_SECRET",
    "DSPY_PROVIDER",
    "DSPY_MODEL",
    "DSPY_MODEL_LOCK",
    "GROQ_API_KEY",
    "OPENAI_API_KEY",
    "FORM_API_HTTP_LOG",
    "FORM_API_CORS_ORIGINS",
)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    for name in _CLEARED_ENV:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("AUTH_JWT_SECRET", "test-secret")
    monkeypatch.setenv("FORM_APP_BASE_URL", "http://forms.test")
    monkeypatch.setenv("UPLOAD_DIR", str(tmp_path / "uploads"))

    store = MemoryStore()
    set_store(store)
    http.set_transport(None)
    ai_response_cache.clear()
    monkeypatch.setattr(realtime, "_broker", None)
    yield store
    set_store(None)
    http.set_transport(None)


@pytest.fixture
def store(isolated_env):
    return isolated_env


@pytest.fixture
def client():
    from fastapi.testclient import TestClient

    from form_builder_service.api.main import create_app

    with TestClient(create_app()) as c:
        yield c


def signup(client, email="owner@example.com", password="password123", name="Owner"):
    res = client.post("/api/auth/signup", json={"email": email, "password": password, "name": name})
    assert res.status_code == 201, res.text
    data = res.json()
    return data["token"], data["user"]


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


SAMPLE_FIELDS = [
    {"id": "name", "label": "Name", "type": "short-answer", "required": True},
    {"id": "email", "label": "Email", "type": "email", "required": True},
    {
        "id": "color",
        "label": "Favourite colour",
        "type": "multiple-choice",
        "options": ["Red", "Blue"],
    },
]


@pytest.fixture
def owner(client):
    token, user = signup(client)
    return {"token": token, "user": user, "headers": bearer(token)}


@pytest.fixture
def form_id(client, owner):
    res = client.post("/api/forms", json={"title": "Contact us", "fields": SAMPLE_FIELDS}, headers=owner["headers"])
    assert res.status_code == 200, res.text
    return res.json()["id"]
