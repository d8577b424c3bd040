"""Pytest config: PYTHONPATH and a fake Valyu API served through httpx.MockTransport."""
import json
import os
import sys
from pathlib import Path

import httpx
import pytest

root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(root))
os.environ.setdefault("VALYU_API_KEY", "test-dummy-key")

from valyu_tools.config import get_settings  # noqa: E402
from valyu_tools.transport import ValyuTransport  # noqa: E402

BASE_URL = "https://api.valyu.test"


class FakeValyu:
    """Records every request; answers with `handler` (default: empty successful search)."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.handler = lambda request: httpx.Response(200, json={"success": True, "results": []})

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    @property
    def calls(self) -> int:
        return len(self.requests)

    def bodies(self) -> list[dict]:
        return [json.loads(r.content) for r in self.requests if r.content]

    def transport(self) -> ValyuTransport:
        return ValyuTransport(
            BASE_URL,
            5.0,
            client=httpx.Client(transport=httpx.MockTransport(self)),
            async_client=httpx.AsyncClient(transport=httpx.MockTransport(self)),
        )


@pytest.fixture(autouse=True)
def dummy_env_key(monkeypatch):
    """A real key from the shell or .env never reaches get_settings() in tests."""
    monkeypatch.setenv("VALYU_API_KEY", "test-dummy-key")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def fake_api():
    return FakeValyu()


@pytest.fixture
def transport(fake_api):
    return fake_api.transport()


@pytest.fixture
def no_env_key():
    return lambda: None


@pytest.fixture
def env_key():
    return lambda: "env-key"
