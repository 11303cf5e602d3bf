"""Pytest fixtures: SQLite store, database payload storage and a fake Stripe gateway."""
import os

# Set test env BEFORE any imports that use config
os.environ["ENVIRONMENT"] = "test"
os.environ.pop("DATABASE_URL", None)

import pytest
from httpx import ASGITransport, AsyncClient

from app.db import Database
from app.main import app
from app.services.container import Services
from app.services.storage import DatabasePayloadStorage
from factories import FakeGateway


@pytest.fixture
async def db(tmp_path):
    # A file, not :memory:, so every session gets its own connection like on Postgres
    database = Database(f"sqlite+aiosqlite:///{tmp_path / 'entries.db'}")
    await database.create_all()
    yield database
    await database.dispose()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def payloads(db):
    return DatabasePayloadStorage(db)


@pytest.fixture
def services(db, payloads, gateway):
    return Services(db=db, payloads=payloads, gateway=gateway)


@pytest.fixture
async def session(db):
    async with db.session() as s:
        yield s


@pytest.fixture
async def client(services):
    """Async HTTP client against the app with the test services installed."""
    previous = app.state.services
    app.state.services = services
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.state.services = previous
