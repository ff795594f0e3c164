import os
import random

import pytest
from httpx import ASGITransport, AsyncClient

from config import Settings
from main import create_app
from models.database import drop_db, init_db
from models.domain import Team, User
from services.container import build_container


# Test database URL. Defaults to a throwaway SQLite file per test;
# point it at PostgreSQL to exercise real row locks.
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL")


@pytest.fixture(scope="function")
def settings(tmp_path):
    url = TEST_DATABASE_URL or f"sqlite+aiosqlite:///{tmp_path / 'pr_reviewer_test.db'}"
    return Settings(database_url=url, tx_timeout=5.0, bulk_tx_timeout=10.0)


@pytest.fixture(scope="function")
async def container(settings):
    """Fresh schema and services for each test, with a seeded RNG."""
    container = build_container(settings, rng=random.Random(1234))
    await drop_db(container.engine)
    await init_db(container.engine)
    try:
        yield container
    finally:
        await drop_db(container.engine)
        await container.dispose()


@pytest.fixture(scope="function")
async def client(container):
    """Create a test client."""
    app = create_app(container=container)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def make_team(container):
    """Create a team; members are user ids, `inactive` lists the deactivated ones."""

    async def _make_team(team_name, *user_ids, inactive=()):
        members = [
            User(user_id=user_id, username=f"User {user_id}", team_name=team_name, is_active=user_id not in inactive)
            for user_id in user_ids
        ]
        await container.teams.upsert_with_members(Team(team_name=team_name, members=members))
        return members

    return _make_team
