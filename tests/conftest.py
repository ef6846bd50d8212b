from __future__ import annotations

import os
import sys
import pathlib
import tempfile

# Ensure the project root is importable when pytest is run from anywhere.
sys.path.insert(0, str(pathlib.Path(__file__).parent.parent))

# Configuration is read at import time, so it has to be in place first.
os.environ["DB_TYPE"] = "sqlite"
os.environ.setdefault("JWT_SECRET", "test-secret-key")
os.environ.setdefault(
    "DATABASE_URL",
    "sqlite+aiosqlite:///" + os.path.join(tempfile.gettempdir(), "marketplace_quotation_test.db"),
)

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool

from app.core.db import Base, get_db, enable_sqlite_foreign_keys
from app.scripts.create_token import mint_token
from app.scripts.seed_data import seed_database
from main import app


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------

def auth_headers(role: str, caller_id: int) -> dict:
    """Bearer header for a (role, id) pair, as the API expects it."""
    return {"Authorization": f"Bearer {mint_token(role, caller_id)}"}


# Seed ids, in insertion order
ALICE, BIMAL = 1, 2
TECHWORLD, GADGET_CENTRAL, ELECTROMART = 1, 2, 3
IPHONE, GALAXY, MACBOOK, XPS, HEADPHONES, IPAD = 1, 2, 3, 4, 5, 6


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def engine(tmp_path):
    """A fresh SQLite file database per test, with the schema created."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)
    event.listen(engine.sync_engine, "connect", enable_sqlite_foreign_keys)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    factory = sessionmaker(
        bind=engine,
        class_=AsyncSession,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
    )
    async with factory() as session:
        await seed_database(session)
    return factory


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory):
    """AsyncClient over the ASGI app, each request getting its own session."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def customer_headers():
    return auth_headers("customer", ALICE)


@pytest.fixture
def distributor_headers():
    return auth_headers("distributor", TECHWORLD)
