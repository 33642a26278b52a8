import contextlib

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.config.settings import Settings
from src.invites.dtos import InviteDTO
from src.invites.repository.write_models import SqlInviteWriteModel
from src.main import create_app
from src.models.base import BaseModel


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Settings pointing at a throw-away SQLite database."""
    return Settings(
        debug=True,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'wedding_test.db'}",
        SENTRY_DSN="",
        RUN_MIGRATIONS_ON_STARTUP=False,
    )


@pytest_asyncio.fixture
async def app(test_settings):
    app = create_app(test_settings)
    engine = app.state.engine
    yield app
    await engine.dispose()


@pytest.fixture
def client_factory(app):
    """Build a test client, optionally overriding dependencies for its lifetime."""

    @contextlib.asynccontextmanager
    async def factory(overrides: dict | None = None, raise_app_exceptions: bool = True):
        app.dependency_overrides.update(overrides or {})
        transport = ASGITransport(app=app, raise_app_exceptions=raise_app_exceptions)
        try:
            async with AsyncClient(transport=transport, base_url="http://test") as ac:
                yield ac
        finally:
            app.dependency_overrides.clear()

    return factory


@pytest_asyncio.fixture
async def client(client_factory):
    async with client_factory() as ac:
        yield ac


@pytest_asyncio.fixture
async def session_maker(app):
    """Create all tables on the test database and hand out its session factory."""
    engine = app.state.engine
    async with engine.begin() as conn:
        await conn.run_sync(BaseModel.metadata.create_all)

    yield app.state.session_maker

    async with engine.begin() as conn:
        await conn.run_sync(BaseModel.metadata.drop_all)


@pytest.fixture
def create_invite(session_maker):
    """Insert an invite row the way the CLI does."""

    async def _create_invite(invite_id: str = "abc-123", **fields) -> InviteDTO:
        fields.setdefault("name", "The Smiths")
        fields.setdefault("greeting", "Dear Smiths")
        fields.setdefault("lang", "en")
        fields.setdefault("max_adults", 2)
        fields.setdefault("max_children", 1)
        return await SqlInviteWriteModel(session_maker).create_invite(InviteDTO(id=invite_id, **fields))

    return _create_invite
