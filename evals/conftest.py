"""
pytest conftest for the defitools test suite.

Two responsibilities:
1. Isolates credential state: every test gets an empty config dir, a clean
   working directory (no stray .env) and no provider keys in the environment.
2. Provides an httpx.MockTransport-backed ToolClient factory that records
   every outbound request, so tests can assert exactly which calls were made
   (or that none were). No test touches the live network.

pytest-asyncio runs in STRICT mode (pyproject.toml); async tests carry
@pytest.mark.asyncio.
"""

import json

import httpx
import pytest

from defitools.client import ToolClient
from defitools.config import KNOWN_KEYS


# ---------------------------------------------------------------------------
# Credential isolation
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """
    Points DEFITOOLS_CONFIG_DIR at a temp dir, chdirs into a fresh directory,
    and strips known credential env vars. autouse=True applies this everywhere.
    """
    config_dir = tmp_path / "config"
    workdir = tmp_path / "work"
    workdir.mkdir()
    monkeypatch.setenv("DEFITOOLS_CONFIG_DIR", str(config_dir))
    monkeypatch.chdir(workdir)
    for key in KNOWN_KEYS:
        monkeypatch.delenv(key.name, raising=False)
    return config_dir


# ---------------------------------------------------------------------------
# HTTP test double
# ---------------------------------------------------------------------------

class Recorder:
    """Wraps a handler(request) -> httpx.Response and keeps every request it saw."""

    def __init__(self, handler):
        self.handler = handler
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request):
        self.requests.append(request)
        return self.handler(request)

    @property
    def urls(self) -> list[str]:
        return [str(r.url) for r in self.requests]


def json_response(payload, status: int = 200) -> httpx.Response:
    return httpx.Response(status, content=json.dumps(payload), headers={"Content-Type": "application/json"})


def _no_network(request):
    raise AssertionError(f"unexpected request to {request.url}")


@pytest.fixture
def make_client():
    """
    make_client(tools, handler=None) -> (ToolClient, Recorder)

    The default handler fails the test on any request.
    """
    def _make(tools, handler=None, **kwargs):
        recorder = Recorder(handler or _no_network)
        client = ToolClient(tools=tools, transport=httpx.MockTransport(recorder), **kwargs)
        return client, recorder

    return _make
