"""Tests for favorites."""
from __future__ import annotations

import pytest


@pytest.mark.asyncio
async def test_favorite_lifecycle(client, register, create_recipe):
    alice = await register("alice")
    recipe = await create_recipe(alice)
    rid = recipe["id"]

    status = await client.get(f"/api/recipes/{rid}/favorite", headers=alice)
    assert status.json() == {"is_favorite": False}

    resp = await client.post("/api/favorites", json={"recipe_id": rid}, headers=alice)
    assert resp.status_code == 201
    assert resp.json()["recipe_id"] == rid
    assert resp.json()["user_id"] == 1

    listing = await client.get("/api/favorites", headers=alice)
    assert [r["id"] for r in listing.json()] == [rid]
    assert (await client.get(f"/api/recipes/{rid}/favorite", headers=alice)).json()["is_favorite"] is True

    assert (await client.delete(f"/api/favorites/{rid}", headers=alice)).status_code == 204
    assert (await client.get("/api/favorites", headers=alice)).json() == []
    assert (await client.delete(f"/api/favorites/{rid}", headers=alice)).status_code == 404


@pytest.mark.asyncio
async def test_favorite_twice_conflicts(client, register, create_recipe):
    alice = await register("alice")
    recipe = await create_recipe(alice)
    await client.post("/api/favorites", json={"recipe_id": recipe["id"]}, headers=alice)
    resp = await client.post("/api/favorites", json={"recipe_id": recipe["id"]}, headers=alice)
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_favorite_unknown_recipe(client, register):
    alice = await register("alice")
    resp = await client.post("/api/favorites", json={"recipe_id": 999}, headers=alice)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_favorites_are_per_user(client, register, create_recipe):
    alice = await register("alice")
    bob = await register("bob")
    recipe = await create_recipe(alice)
    await client.post("/api/favorites", json={"recipe_id": recipe["id"]}, headers=alice)

    assert (await client.get("/api/favorites", headers=bob)).json() == []
    assert (await client.get(f"/api/recipes/{recipe['id']}/favorite", headers=bob)).json()["is_favorite"] is False


@pytest.mark.asyncio
async def test_deleting_recipe_removes_favorite(client, register, create_recipe):
    alice = await register("alice")
    recipe = await create_recipe(alice)
    await client.post("/api/favorites", json={"recipe_id": recipe["id"]}, headers=alice)
    await client.delete(f"/api/recipes/{recipe['id']}", headers=alice)
    assert (await client.get("/api/favorites", headers=alice)).json() == []


@pytest.mark.asyncio
async def test_favorites_require_auth(client):
    assert (await client.get("/api/favorites")).status_code == 401
