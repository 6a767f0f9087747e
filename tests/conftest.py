"""Shared pytest fixtures for the gatekeeper tests."""

import httpx
import pytest
from fastapi.testclient import TestClient

from core.config import Settings, get_settings
from main import app
from routers import get_clock
from services.forwarder import OriginForwarder, get_forwarder

SECRET = "test-secret"
NOW = 1_700_000_000.0
ORIGIN_URL = "http://origin.test"


class OriginRecorder:
    """MockTransport handler that records requests and returns a canned response."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.status_code = 200
        self.headers: list[tuple[str, str]] = [("content-type", "text/plain")]
        self.body = b"origin ok"
        self.error: Exception | None = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status_code, headers=self.headers, stream=httpx.ByteStream(self.body))

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from the environment and any .env file."""
    return Settings(_env_file=None, hmac_secret=SECRET, origin_url=ORIGIN_URL)


@pytest.fixture
def origin() -> OriginRecorder:
    return OriginRecorder()


@pytest.fixture
def now() -> float:
    return NOW


@pytest.fixture
def client(settings: Settings, origin: OriginRecorder, now: float):
    """TestClient with settings, clock and origin transport overridden."""
    forwarder = OriginForwarder(httpx.AsyncClient(transport=httpx.MockTransport(origin)))

    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_forwarder] = lambda: forwarder
    app.dependency_overrides[get_clock] = lambda: (lambda: now)

    yield TestClient(app)

    app.dependency_overrides.clear()
