import json
from collections.abc import Callable

import httpx
import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.routing import get_http_client


class FakeProvider:
    """Records outbound provider requests and answers them with ``responder``."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.responder: Callable[[httpx.Request], httpx.Response] = lambda request: httpx.Response(500)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responder(request)

    def json_bodies(self) -> list[dict]:
        return [json.loads(request.content) for request in self.requests]

    def fail_with_status(self, status_code: int = 500) -> None:
        self.responder = lambda request: httpx.Response(
            status_code, json={"error": {"message": "upstream exploded"}}
        )

    def fail_with_network_error(self) -> None:
        def raise_connect_error(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        self.responder = raise_connect_error

    def http_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture(autouse=True)
def no_credentials(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("FAL_KEY", raising=False)


@pytest.fixture
def openai_key(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test-key")
    return "sk-test-key"


@pytest.fixture
def fal_key(monkeypatch):
    monkeypatch.setenv("FAL_KEY", "fal-test-key")
    return "fal-test-key"


@pytest.fixture
def provider():
    fake = FakeProvider()

    async def override():
        async with fake.http_client() as client:
            yield client

    app.dependency_overrides[get_http_client] = override
    yield fake
    app.dependency_overrides.clear()


@pytest.fixture
def client(provider):
    return TestClient(app)


def chat_completion(content: str, usage: dict | None = None) -> httpx.Response:
    body = {"choices": [{"message": {"role": "assistant", "content": content}}]}
    if usage is not None:
        body["usage"] = usage
    return httpx.Response(200, json=body)
