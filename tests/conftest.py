"""
pytest configuration and fixtures for the User API test suite
Each test gets an isolated in-memory Redis, a store client and an HTTP client.
"""

import pytest
import pytest_asyncio
import fakeredis
import httpx

from app import create_app
from database.connection import StoreClient
from services.users_service import UsersService


@pytest_asyncio.fixture
async def redis_client():
    """In-memory Redis shared by the store client under test"""
    client = fakeredis.FakeAsyncRedis(decode_responses=True)
    await client.flushall()
    yield client
    await client.flushall()
    await client.aclose()


@pytest_asyncio.fixture
async def store(redis_client):
    return StoreClient(client=redis_client)


@pytest_asyncio.fixture
async def users_service(store):
    return UsersService(store)


@pytest.fixture
def static_dir(tmp_path):
    public = tmp_path / "public"
    public.mkdir()
    (public / "index.html").write_text("<h1>User API</h1>")
    return public


@pytest.fixture
def app(store, static_dir):
    return create_app(store=store, static_dir=str(static_dir))


@pytest_asyncio.fixture
async def api_client(app):
    """HTTP client bound to the ASGI app, no network involved"""
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def sample_user():
    return {
        "username": "u1",
        "firstname": "A",
        "lastname": "B",
        "email": "a@b.com",
    }
