from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from services.payout_service.app.main import app as payout_app
from services.payout_service.payninja_client import get_payout_provider
from services.vendor_service.app.main import app as vendor_app
from services.wallet_service.app.main import app as wallet_app
from tests.factories import FakePayoutProvider


@pytest.fixture
def fake_provider() -> FakePayoutProvider:
    return FakePayoutProvider()


async def _client(app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as client:
        yield client
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def vendor_client(test_engine) -> AsyncGenerator[AsyncClient, None]:
    async for client in _client(vendor_app):
        yield client


@pytest_asyncio.fixture
async def wallet_client(test_engine) -> AsyncGenerator[AsyncClient, None]:
    async for client in _client(wallet_app):
        yield client


@pytest_asyncio.fixture
async def payout_client(
    test_engine, fake_provider
) -> AsyncGenerator[AsyncClient, None]:
    """Payout app wired to the in-memory payment rail."""
    payout_app.dependency_overrides[get_payout_provider] = lambda: fake_provider
    async for client in _client(payout_app):
        yield client
