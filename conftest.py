import os
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession

# Local overrides for test runs (e.g. TEST_DATABASE_URL pointing at Postgres)
from dotenv import load_dotenv

env_test_path = os.path.join(os.path.dirname(__file__), ".env.test")
if os.path.exists(env_test_path):
    load_dotenv(env_test_path, override=False)

# Must be set before libs.db.config builds the engine. The default in-memory
# SQLite database lives on a single shared connection (StaticPool).
os.environ["DATABASE_URL"] = os.environ.get(
    "TEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:"
)
os.environ.setdefault("ENVIRONMENT", "local")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from libs.common.config import get_settings  # noqa: E402

# Clear cached settings to reload with the test env vars
get_settings.cache_clear()
settings = get_settings()

from libs.db.base import Base  # noqa: E402
from libs.db.config import AsyncSessionLocal, engine  # noqa: E402

# Import all models so metadata includes every table
from services.payout_service import models as _payout_models  # noqa: E402,F401
from services.vendor_service import models as _vendor_models  # noqa: E402,F401
from services.wallet_service import models as _wallet_models  # noqa: E402,F401


@pytest_asyncio.fixture
async def test_engine():
    """
    Create every table on the application engine, drop them afterwards.

    The app's own engine is used (not a separate one) so that request
    handlers, background jobs and tests all see the same database.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    # Next test starts on a fresh connection (a fresh database for SQLite)
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    """The app's session factory, for code that opens its own sessions."""
    return AsyncSessionLocal


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """
    Yield a database session for service-layer calls and assertions.
    """
    async with session_factory() as session:
        yield session
