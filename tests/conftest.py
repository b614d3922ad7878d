"""Pytest configuration and fixtures for payment-advice tests."""

from __future__ import annotations

import base64
from collections.abc import AsyncGenerator
from datetime import datetime, timedelta, timezone

import pytest
import respx
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient, Response
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from payment_advice.config import Settings
from payment_advice.main import create_app

UPSTREAM_URL = "http://upstream.test/api/payment-advice"
PUBLIC_BASE_URL = "http://files.test"
MAINTENANCE_KEY = "test-maintenance-key"

# Test database URL - in-memory SQLite for fast tests
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

SAMPLE_PDF = b"%PDF-1.4\n1 0 obj\n<< /Type /Catalog >>\nendobj\ntrailer\n%%EOF\n"


def payment_advice_body(content: bytes = SAMPLE_PDF) -> dict:
    """Upstream response body carrying ``content`` as a data URL."""
    encoded = base64.b64encode(content).decode("ascii")
    return {"data": [{"paymentAdviceLink": f"data:application/pdf;base64,{encoded}"}]}


class FakeClock:
    """Controllable clock for pause and TTL tests."""

    def __init__(self, now: datetime | None = None) -> None:
        self.now = now or datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    """Clock frozen at a fixed instant until advanced."""
    return FakeClock()


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Create test settings with mocked values."""
    return Settings(
        api_base_url=UPSTREAM_URL,
        access_token="test-access-token",
        client_id="test-client-id",
        upstream_timeout_seconds=5.0,
        public_base_url=PUBLIC_BASE_URL,
        maintenance_key=MAINTENANCE_KEY,
        delivery="inline",
        response_mode="strict",
        storage_dir=tmp_path / "artifacts",
        database_url=TEST_DATABASE_URL,
        log_level="DEBUG",
        log_format="console",
    )


@pytest.fixture
def make_app(test_settings, clock):
    """Factory for applications with settings overrides."""

    def _make_app(**overrides) -> FastAPI:
        settings = test_settings.model_copy(update=overrides)
        return create_app(settings, clock=clock)

    return _make_app


@pytest.fixture
def app(make_app) -> FastAPI:
    """Create a test application with inline delivery."""
    return make_app()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def test_engine():
    """Create a test database engine with in-memory SQLite."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    yield engine

    await engine.dispose()


# Mock external services


@pytest.fixture
def mock_upstream():
    """Mock the upstream payment advice API using respx."""
    with respx.mock(assert_all_called=False) as respx_mock:
        respx_mock.get(UPSTREAM_URL, name="payment_advice").mock(
            return_value=Response(200, json=payment_advice_body()),
        )
        yield respx_mock
