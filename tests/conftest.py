"""Shared test fixtures — storage backends, fake upstreams and an API client."""
from __future__ import annotations

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.pool import StaticPool

from src.db.memory import MemoryStorage
from src.db.repository import SqlStorage
from src.services.mealdb import MealDbClient
from src.services.nutrition import NutritionClient
from tests.samples import FakeMealDb, FakeSpoonacular

# Import app so its routes are registered before any test module uses it
from src.api.main import app  # noqa: E402

# One connection shared by every session, so the in-memory DB survives between them
TEST_DB_URL = "sqlite+aiosqlite://"


async def _make_storage(backend: str):
    if backend == "memory":
        storage = MemoryStorage()
    else:
        storage = SqlStorage.from_url(
            TEST_DB_URL,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    await storage.init()
    return storage


@pytest_asyncio.fixture(params=["memory", "sql"])
async def storage(request):
    """Every storage test runs against both backends."""
    store = await _make_storage(request.param)
    yield store
    await store.close()


@pytest.fixture
def fake_mealdb():
    return FakeMealDb()


@pytest.fixture
def fake_spoonacular():
    return FakeSpoonacular()


@pytest_asyncio.fixture
async def mealdb(fake_mealdb):
    client = MealDbClient(transport=httpx.MockTransport(fake_mealdb))
    yield client
    await client.aclose()


@pytest_asyncio.fixture
async def nutrition(fake_spoonacular):
    client = NutritionClient(
        api_key="test-key",
        retry_delay=0,
        transport=httpx.MockTransport(fake_spoonacular),
    )
    yield client
    await client.aclose()


@pytest_asyncio.fixture
async def client(mealdb, nutrition):
    """API client over a fresh in-memory store and the fake upstreams."""
    app.state.storage = MemoryStorage()
    app.state.mealdb = mealdb
    app.state.nutrition = nutrition
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def register(client):
    """Register a user and return bearer headers for them."""

    async def _register(username: str = "alice", **overrides) -> dict:
        body = {
            "username": username,
            "email": f"{username}@example.com",
            "name": username.title(),
            "password": "s3cret-pass",
            **overrides,
        }
        resp = await client.post("/api/register", json=body)
        assert resp.status_code == 201, resp.text
        return {"Authorization": f"Bearer {resp.json()['access_token']}"}

    return _register


RECIPE_BODY = {
    "recipe": {
        "title": "Tomato Soup",
        "description": "Silky roasted tomato soup",
        "image_url": "https://example.com/soup.jpg",
        "prep_time": 10,
        "cook_time": 35,
        "difficulty": "Easy",
        "calories": 220,
        "servings": 4,
        "tags": ["Vegetarian", "Soup"],
    },
    "ingredients": [
        {"name": "tomatoes", "quantity": "6", "unit": None},
        {"name": "olive oil", "quantity": "2", "unit": "tbsp"},
    ],
    "instructions": [
        {"step_number": 2, "description": "Blend until smooth."},
        {"step_number": 1, "description": "Roast the tomatoes."},
    ],
}


@pytest.fixture
def create_recipe(client):
    """Create a recipe as the given user; returns the created recipe JSON."""

    async def _create(headers: dict, **recipe_overrides) -> dict:
        body = {**RECIPE_BODY, "recipe": {**RECIPE_BODY["recipe"], **recipe_overrides}}
        resp = await client.post("/api/recipes", json=body, headers=headers)
        assert resp.status_code == 201, resp.text
        return resp.json()["recipe"]

    return _create
