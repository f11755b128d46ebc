"""Test fixtures for the rental operations backend."""
from __future__ import annotations

import os
from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")

from rentops.core.config import get_settings
from rentops.db.base import Base
from rentops.db.session import dispose_engine, get_sessionmaker
from rentops.main import app
from rentops.models import AgreementSequence
from rentops.services.sequence_service import AGREEMENT_SEQUENCE
from scripts.seed_pricing import seed_pricing


@pytest.fixture(scope="session")
def db_url(tmp_path_factory: pytest.TempPathFactory) -> str:
    """Provide a temporary SQLite database URL for the test session."""
    db_path = tmp_path_factory.mktemp("db") / "test.db"
    return f"sqlite+aiosqlite:///{db_path}"


@pytest_asyncio.fixture()
async def reset_database(db_url: str) -> AsyncIterator[None]:
    """Drop and recreate the database schema for an isolated test."""
    os.environ["DATABASE_URL"] = db_url
    get_settings.cache_clear()
    get_settings()

    await dispose_engine(db_url)
    engine = create_async_engine(db_url, future=True)
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.drop_all)
        await connection.run_sync(Base.metadata.create_all)
    await engine.dispose()
    yield
    await dispose_engine(db_url)


@pytest_asyncio.fixture()
async def seeded_database(reset_database: None, db_url: str) -> AsyncIterator[None]:
    """Schema plus the demo price lists, misc charges and agreement counter."""
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        await seed_pricing(session)
        session.add(AgreementSequence(name=AGREEMENT_SEQUENCE, last_value=0))
        await session.commit()
    yield


@pytest_asyncio.fixture()
async def app_context(
    seeded_database: None, db_url: str
) -> AsyncIterator[dict[str, object]]:
    """Yield an async client bound to a freshly seeded database."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield {"client": client, "db_url": db_url}
