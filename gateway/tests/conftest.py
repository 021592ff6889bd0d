import hashlib
import json
import os
import sys
REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

import pytest
import requests
from fastapi.testclient import TestClient

import gateway.sandbox as sandbox_module
from gateway.config import AdminSettings, ArchiveSettings, SandboxSettings, Settings
from gateway.main import create_app

ADMIN_PASSWORD = "correct"


class FakeResponse:
    def __init__(self, status_code=200, text=""):
        self.status_code = status_code
        self.text = text

    @property
    def ok(self):
        return self.status_code < 400


class FakeSandboxSession:
    """Stands in for ``requests.Session`` inside SandboxClient."""

    def __init__(self):
        self.reply = FakeResponse(200, json.dumps({"success": True, "output": []}))
        self.error: Exception | None = None
        self.healthy = True
        self.posts: list[dict] = []

    def respond(self, body: dict, status_code: int = 200):
        self.reply = FakeResponse(status_code, json.dumps(body))

    def respond_raw(self, status_code: int, text: str):
        self.reply = FakeResponse(status_code, text)

    def post(self, url, json=None, timeout=None):
        self.posts.append({"url": url, "json": json, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.reply

    def get(self, url, timeout=None):
        if not self.healthy:
            raise requests.ConnectionError("connection refused")
        return FakeResponse(200, '{"status":"ok"}')

    def close(self):
        pass


@pytest.fixture
def fake_sandbox(monkeypatch):
    session = FakeSandboxSession()
    monkeypatch.setattr(sandbox_module.requests, "Session", lambda: session)
    return session


@pytest.fixture
def runs_dir(tmp_path):
    return tmp_path / "runs"


@pytest.fixture
def settings(runs_dir):
    s = Settings()
    s.archive = ArchiveSettings(runs_dir=str(runs_dir), utc_offset_hours=9, caller_hash_salt="")
    s.sandbox = SandboxSettings(url="http://sandbox.test:3000")
    s.admin = AdminSettings(password_hash=hashlib.sha256(ADMIN_PASSWORD.encode()).hexdigest())
    return s


@pytest.fixture
def client(settings, fake_sandbox):
    app = create_app(settings, enable_sweeper=False)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def admin_headers(client):
    res = client.post("/admin/auth", json={"password": ADMIN_PASSWORD})
    token = res.json()["token"]
    return {"Authorization": f"Bearer {token}"}
