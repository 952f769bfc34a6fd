"""Pytest configuration and fixtures for mcp-server-jina tests."""

import json
import os
from collections.abc import Callable
from pathlib import Path

import httpx
import pytest

from mcp_server_jina.client import JinaClient
from mcp_server_jina.config import ServerConfig

Responder = Callable[[httpx.Request], httpx.Response]


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "e2e: End-to-end tests against the real Jina API")


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep host environment variables from leaking into settings."""
    for var in list(os.environ.keys()):
        if var.startswith("JINA_"):
            monkeypatch.delenv(var, raising=False)


class ProviderStub:
    """Stand-in for the Jina API that records every outbound request."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.routes: dict[str, Responder] = {}

    def on(self, host: str, responder: Responder) -> None:
        self.routes[host] = responder

    def answer_json(self, host: str, body: object, status_code: int = 200) -> None:
        self.on(host, lambda request: httpx.Response(status_code, json=body))

    def answer_stream(self, host: str, lines: list[str], status_code: int = 200) -> None:
        content = "".join(f"{line}\n" for line in lines).encode()
        self.on(
            host,
            lambda request: httpx.Response(status_code, content=content, headers={"Content-Type": "text/event-stream"}),
        )

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        responder = self.routes.get(request.url.host)
        if responder is None:
            return httpx.Response(404)
        return responder(request)

    def client(self, api_key: str | None = "test-key") -> JinaClient:
        return JinaClient(api_key, http_client=httpx.AsyncClient(transport=httpx.MockTransport(self.handle)))


@pytest.fixture
def provider() -> ProviderStub:
    return ProviderStub()


@pytest.fixture
def config() -> ServerConfig:
    return ServerConfig(name="jina-test", version="0.0.1", apiKeys={"jina": "test-key"}, transport="stdio")


@pytest.fixture
def write_config(tmp_path: Path) -> Callable[[object], Path]:
    """Write a config file and return its path."""

    def _write(data: object, name: str = "config.json") -> Path:
        path = tmp_path / name
        path.write_text(data if isinstance(data, str) else json.dumps(data), encoding="utf-8")
        return path

    return _write
