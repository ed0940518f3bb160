"""Tests for meal planning."""
from __future__ import annotations

import pytest


async def _plan(client, headers, recipe_id, planned_date="2024-03-10T12:00:00", meal_type="lunch", **extra):
    return await client.post("/api/meal-plans", json={
        "recipe_id": recipe_id,
        "planned_date": planned_date,
        "meal_type": meal_type,
        **extra,
    }, headers=headers)


@pytest.mark.asyncio
async def test_create_meal_plan(client, register, create_recipe):
    alice = await register("alice")
    recipe = await create_recipe(alice)

    resp = await _plan(client, alice, recipe["id"], notes="double batch")
    assert resp.status_code == 201
    data = resp.json()
    assert data["meal_type"] == "lunch"
    assert data["notes"] == "double batch"
    assert data["user_id"] == 1
    assert data["planned_date"].startswith("2024-03-10T12:00:00")


@pytest.mark.asyncio
async def test_plan_external_recipe(client, register):
    alice = await register("alice")
    assert (await _plan(client, alice, 52772)).status_code == 201
    assert (await _plan(client, alice, 4242)).status_code == 404


@pytest.mark.asyncio
async def test_invalid_meal_type(client, register, create_recipe):
    alice = await register("alice")
    recipe = await create_recipe(alice)
    resp = await _plan(client, alice, recipe["id"], meal_type="brunch")
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_plans_for_day_in_slot_order(client, register, create_recipe):
    alice = await register("alice")
    recipe = await create_recipe(alice)
    await _plan(client, alice, recipe["id"], "2024-03-10T19:00:00", "dinner")
    await _plan(client, alice, recipe["id"], "2024-03-10T08:00:00", "breakfast")
    await _plan(client, alice, recipe["id"], "2024-03-10T21:00:00", "snack")
    await _plan(client, alice, recipe["id"], "2024-03-11T12:00:00", "lunch")

    resp = await client.get("/api/meal-plans/date/2024-03-10", headers=alice)
    data = resp.json()
    assert [p["meal_type"] for p in data] == ["breakfast", "dinner", "snack"]
    assert all(p["recipe_title"] == "Tomato Soup" for p in data)

    assert (await client.get("/api/meal-plans/date/not-a-date", headers=alice)).status_code == 422


@pytest.mark.asyncio
async def test_list_ordered_by_date(client, register, create_recipe):
    alice = await register("alice")
    bob = await register("bob")
    recipe = await create_recipe(alice)
    await _plan(client, alice, recipe["id"], "2024-05-01T12:00:00")
    await _plan(client, alice, recipe["id"], "2024-04-01T12:00:00")
    await _plan(client, bob, recipe["id"], "2024-04-15T12:00:00")

    data = (await client.get("/api/meal-plans", headers=alice)).json()
    assert [p["planned_date"][:10] for p in data] == ["2024-04-01", "2024-05-01"]


@pytest.mark.asyncio
async def test_update_meal_plan(client, register, create_recipe):
    alice = await register("alice")
    bob = await register("bob")
    recipe = await create_recipe(alice)
    plan = (await _plan(client, alice, recipe["id"], notes="x")).json()

    assert (await client.patch(f"/api/meal-plans/{plan['id']}", json={"meal_type": "dinner"}, headers=bob)).status_code == 404

    resp = await client.patch(f"/api/meal-plans/{plan['id']}", json={"meal_type": "dinner", "notes": None}, headers=alice)
    assert resp.status_code == 200
    assert resp.json()["meal_type"] == "dinner"
    assert resp.json()["notes"] is None
    assert resp.json()["recipe_id"] == recipe["id"]


@pytest.mark.asyncio
async def test_delete_meal_plan(client, register, create_recipe):
    alice = await register("alice")
    bob = await register("bob")
    recipe = await create_recipe(alice)
    plan = (await _plan(client, alice, recipe["id"])).json()

    assert (await client.delete(f"/api/meal-plans/{plan['id']}", headers=bob)).status_code == 404
    assert (await client.delete(f"/api/meal-plans/{plan['id']}", headers=alice)).status_code == 204
    assert (await client.get("/api/meal-plans", headers=alice)).json() == []


@pytest.mark.asyncio
async def test_meal_plans_require_auth(client):
    assert (await client.get("/api/meal-plans")).status_code == 401
