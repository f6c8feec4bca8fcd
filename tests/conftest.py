"""
Shared fixtures. Outbound HTTP never leaves the process: urllib.request.urlopen
is replaced with a FakeUpstream that answers per URL and records every call.
"""

import io
import json
import urllib.error
import urllib.parse
import urllib.request

import pytest

from config import FormConfig
from main import create_app

TURNSTILE_URL = "https://turnstile.test/siteverify"
SMTP2GO_URL = "https://smtp2go.test/v3/email/send"


class _FakeResponse:
    def __init__(self, status: int, body: bytes):
        self.status = status
        self._body = body

    def read(self) -> bytes:
        return self._body

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


class FakeUpstream:
    def __init__(self):
        self.calls: list[urllib.request.Request] = []
        self.timeouts: list[float | None] = []
        self._responses: dict[str, tuple[int, bytes] | Exception] = {}

    def respond(self, url: str, body, status: int = 200) -> None:
        raw = body if isinstance(body, bytes) else json.dumps(body).encode()
        self._responses[url] = (status, raw)

    def fail(self, url: str, exc: Exception) -> None:
        self._responses[url] = exc

    def calls_to(self, url: str) -> list[urllib.request.Request]:
        return [c for c in self.calls if c.full_url == url]

    def form_sent_to(self, url: str) -> dict:
        (req,) = self.calls_to(url)
        return dict(urllib.parse.parse_qsl(req.data.decode()))

    def json_sent_to(self, url: str) -> dict:
        (req,) = self.calls_to(url)
        return json.loads(req.data)

    def __call__(self, req, timeout=None):
        self.calls.append(req)
        self.timeouts.append(timeout)
        answer = self._responses[req.full_url]
        if isinstance(answer, Exception):
            raise answer
        status, raw = answer
        if status >= 400:
            raise urllib.error.HTTPError(req.full_url, status, "error", {}, io.BytesIO(raw))
        return _FakeResponse(status, raw)


@pytest.fixture
def upstream(monkeypatch) -> FakeUpstream:
    fake = FakeUpstream()
    fake.respond(TURNSTILE_URL, {"success": True})
    fake.respond(SMTP2GO_URL, {"request_id": "r-1", "data": {"succeeded": 1, "failed": 0}})
    monkeypatch.setattr(urllib.request, "urlopen", fake)
    return fake


@pytest.fixture
def config() -> FormConfig:
    return FormConfig(
        allowed_domains=("example.com", "localhost:3000", "127.0.0.1:3000"),
        turnstile_secret="ts-secret",
        turnstile_verify_url=TURNSTILE_URL,
        smtp2go_api_key="api-key-123",
        smtp2go_url=SMTP2GO_URL,
        sender_email="forms@example.com",
        recipient_email="owner@example.com",
    )


@pytest.fixture
def client(config):
    app = create_app(config)
    app.config['TESTING'] = True
    return app.test_client()
