"""
API test fixtures: fresh in-memory database per test plus an httpx client
bound to the ASGI app.

Route handlers receive the test session through the get_app_db override.
Background work (activity entries, notifications) opens its own sessions
through AppAsyncSessionLocal, so that factory is patched as well.
"""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import vortexboard.db as db_module
import vortexboard.db_handlers.base as handlers_base
from main import app
from vortexboard.config import settings
from vortexboard.db import get_app_db
from vortexboard.dependencies.services import get_email_service
from vortexboard.models.base import Base
from vortexboard.services.email import EmailService


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False, poolclass=StaticPool
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )


@pytest.fixture
def upload_dir(tmp_path, monkeypatch):
    path = tmp_path / "uploads"
    monkeypatch.setattr(settings, "upload_dir", str(path))
    return path


@pytest.fixture
async def client(session_factory, transport, upload_dir, monkeypatch):
    """FastAPI test client with the database and email transport replaced."""

    async def override_get_app_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_app_db] = override_get_app_db
    app.dependency_overrides[get_email_service] = lambda: EmailService(
        transport, sender="test@vortexboard.local"
    )
    monkeypatch.setattr(handlers_base, "AppAsyncSessionLocal", session_factory)
    monkeypatch.setattr(db_module, "AppAsyncSessionLocal", session_factory)

    # Unhandled errors are asserted on as 500 responses rather than re-raised.
    async with AsyncClient(
        transport=ASGITransport(app=app, raise_app_exceptions=False),
        base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture
def register(client):
    """Register a user through the API; returns id, email, token and auth headers."""

    async def _register(name: str, password: str = "secret123") -> dict:
        email = f"{name.lower()}@example.com"
        res = await client.post(
            "/api/auth/register",
            json={"name": name, "email": email, "password": password},
        )
        assert res.status_code == 201, res.text
        body = res.json()
        return {
            "id": body["user"]["id"],
            "name": name,
            "email": email,
            "token": body["token"],
            "headers": {"Authorization": f"Bearer {body['token']}"},
        }

    return _register


@pytest.fixture
async def alice(register):
    return await register("Alice")


@pytest.fixture
async def bob(register):
    return await register("Bob")


@pytest.fixture
async def carol(register):
    return await register("Carol")


@pytest.fixture
def create_board(client):
    async def _create_board(user: dict, **data) -> dict:
        payload = {"name": "Roadmap", **data}
        res = await client.post("/api/boards", json=payload, headers=user["headers"])
        assert res.status_code == 201, res.text
        return res.json()["board"]

    return _create_board


@pytest.fixture
def create_task(client):
    async def _create_task(user: dict, board_id: str, **data) -> dict:
        payload = {"title": "Write docs", **data}
        res = await client.post(
            f"/api/boards/{board_id}/tasks", json=payload, headers=user["headers"]
        )
        assert res.status_code == 201, res.text
        return res.json()["task"]

    return _create_task


@pytest.fixture
def share_board(client):
    async def _share_board(owner: dict, board_id: str, user: dict, permission: str):
        res = await client.post(
            f"/api/boards/{board_id}/collaborators",
            json={"user_id": user["id"], "permission": permission},
            headers=owner["headers"],
        )
        assert res.status_code == 200, res.text
        return res.json()["board"]

    return _share_board
