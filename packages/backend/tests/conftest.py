"""Test fixtures — a fresh in-memory database per test.

Each test gets its own SQLite (aiosqlite) engine with the schema created
from the models, and one AsyncSession that the app's get_db dependency
is overridden to yield. Nothing is shared between tests.

bcrypt runs with the minimum work factor here; hashing at the production
factor would make every registration take ~100ms.
"""

import uuid

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from postboard.auth.jwt import issue_token
from postboard.config import settings
from postboard.db.engine import get_db
from postboard.db.models import Base
from postboard.main import app
from postboard.services.user_service import UserService

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"

settings.bcrypt_rounds = 4


@pytest_asyncio.fixture()
async def db_session():
    """Per-test session on a brand-new in-memory database.

    StaticPool keeps the single connection alive, otherwise every new
    connection would see an empty :memory: database.
    """
    engine = create_async_engine(TEST_DB_URL, poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session = AsyncSession(bind=engine, expire_on_commit=False)
    try:
        yield session
    finally:
        await session.close()
        await engine.dispose()


@pytest_asyncio.fixture()
async def client(db_session):
    """HTTP client with the app's get_db overridden to the test session.

    Auth is NOT mocked: protected routes run the real token pipeline, so
    tests obtain tokens through /auth/login or the helper fixtures.
    """
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def register(client):
    """Factory: register a user through the API and log them in.

    Returns (user_json, auth_headers).
    """
    async def _register(username=None, password="password1", **extra):
        username = username or f"user-{uuid.uuid4().hex[:8]}"
        body = {
            "username": username,
            "email": f"{username}@example.com",
            "password": password,
            **extra,
        }
        r = await client.post("/users", json=body)
        assert r.status_code == 201, r.text

        r = await client.post(
            "/auth/login", json={"username": username, "password": password}
        )
        assert r.status_code == 200, r.text
        headers = {"Authorization": f"Bearer {r.json()['token']}"}
        return (await client.get("/users/me", headers=headers)).json(), headers

    return _register


@pytest_asyncio.fixture()
async def admin_headers(db_session):
    """Auth headers for an admin created directly through the service.

    The API never grants the admin role, so this bypasses it.
    """
    admin = await UserService(db_session).create(
        username="root",
        email="root@example.com",
        password="rootpassword",
        role="admin",
    )
    return {"Authorization": f"Bearer {issue_token(str(admin.id))}"}
