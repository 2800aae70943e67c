"""Fixtures for API tests."""

from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient

from boxstock.api.main import app


@pytest.fixture
def actor() -> dict[str, str]:
    """Headers identifying the operator."""
    return {"X-User-Id": "cashier"}


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
