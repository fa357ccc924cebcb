"""Shared fixtures: configuration and a fake auth service.

The fake service is an ``httpx.MockTransport`` injected into
``AuthApiClient``, so tests see exactly the requests a real server would
receive without touching the network.
"""

import json
from collections.abc import Callable

import httpx
import pytest

from tenant_auth import metrics
from tenant_auth.authapi import AuthApiClient
from tenant_auth.config import AuthConfig

AUTH_URL = "https://auth.example.com"

Handler = Callable[[httpx.Request], httpx.Response]


class FakeAuthService:
    """Records requests and answers them with a configurable handler."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.handler: Handler = lambda request: httpx.Response(404)

    def respond_with(self, status_code: int, body: object = None, content: bytes | None = None) -> None:
        """Answer every request with a fixed status and JSON body (or raw content)."""
        if content is None:
            content = json.dumps(body).encode() if body is not None else b""
        self.handler = lambda request: httpx.Response(status_code, content=content)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    @property
    def last_request(self) -> httpx.Request:
        return self.requests[-1]


@pytest.fixture
def config() -> AuthConfig:
    """Configuration pointing at the fake auth service."""
    return AuthConfig(
        auth_url=AUTH_URL,
        auth_client_id="tenant-client",
        auth_client_secret="tenant-secret",
    )


@pytest.fixture
def fake_auth() -> FakeAuthService:
    """Fake auth service with no pre-configured responses."""
    return FakeAuthService()


@pytest.fixture
def collector() -> metrics.ExchangeCollector:
    """Fresh exchange metrics collector."""
    return metrics.ExchangeCollector()


@pytest.fixture
def api_client(
    fake_auth: FakeAuthService,
    collector: metrics.ExchangeCollector,
) -> AuthApiClient:
    """AuthApiClient wired to the fake auth service."""
    client = AuthApiClient(
        base_url=AUTH_URL,
        collector=collector,
        transport=httpx.MockTransport(fake_auth),
    )
    yield client
    client.close()
