"""Shared test fixtures for the key checker backend."""

import asyncio
from collections.abc import AsyncGenerator

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from app.config import Environment, Settings
from app.main import create_app
from services.providers import ProviderRegistry, build_registry

# Well-formed keys for each provider (fake values)
OPENAI_KEY = "sk-" + "a1B2c3D4e5" * 2 + "T3BlbkFJ" + "Z9y8X7w6V5" * 2
ANTHROPIC_KEY = "sk-ant-api03-" + "Ab_-9" * 19
GOOGLE_KEY = "AIzaSy" + "Q" * 30 + "_-1"
MISTRAL_KEY = "m" * 16 + "7" * 16


class SlowTransport(httpx.AsyncBaseTransport):
    """Transport that answers after a per-request delay.

    The delay and status are chosen by ``responder(request)``; cancelled
    requests are recorded so tests can assert that calls were aborted.
    """

    def __init__(self, responder) -> None:
        self.responder = responder
        self.requests: list[httpx.Request] = []
        self.cancelled: list[httpx.Request] = []

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        delay, status_code = self.responder(request)
        try:
            await asyncio.sleep(delay)
        except asyncio.CancelledError:
            self.cancelled.append(request)
            raise
        return httpx.Response(status_code, request=request)


@pytest.fixture
def test_settings() -> Settings:
    """Provide test settings with safe defaults."""
    return Settings(
        environment=Environment.TESTING,
        debug=True,
        validation_timeout=0.2,
        anthropic_validation_model="claude-test-model",
    )


@pytest.fixture
def registry(test_settings) -> ProviderRegistry:
    """Provide the default provider registry."""
    return build_registry(test_settings)


@pytest.fixture
async def app():
    """Create a test application instance."""
    application = create_app()
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
async def client(app) -> AsyncGenerator:
    """Provide an async HTTP client for API testing."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
