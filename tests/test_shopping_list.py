"""Tests for the shopping list, quantity parsing and Spoonacular nutrition lookup."""
from __future__ import annotations

import pytest

from src.api.main import app
from src.api.shopping_list import parse_amount
from src.services.nutrition import NO_API_KEY, NutritionClient


class TestParseAmount:
    def test_plain_numbers(self):
        assert parse_amount("2") == 2.0
        assert parse_amount("2 cups") == 2.0
        assert parse_amount("0.25") == 0.25

    def test_fractions(self):
        assert parse_amount("1/2") == 0.5
        assert parse_amount("½") == 0.5
        assert parse_amount("1½") == 1.5

    def test_unparseable_falls_back(self):
        assert parse_amount(None) == 1.0
        assert parse_amount("") == 1.0
        assert parse_amount("a pinch") == 1.0
        assert parse_amount("1/0") == 1.0
        assert parse_amount("some", default=3.0) == 3.0


async def _add(client, headers, **body):
    resp = await client.post("/api/shopping-list", json={"item": "milk", **body}, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.mark.asyncio
async def test_add_and_list(client, register):
    alice = await register("alice")
    item = await _add(client, alice, quantity="1", unit="l")
    assert item["checked"] is False
    assert item["user_id"] == 1

    resp = await client.get("/api/shopping-list", headers=alice)
    data = resp.json()
    assert data["total"] == 1
    assert [i["item"] for i in data["items"]] == ["milk"]
    assert data["groups"] == [{"recipe_id": None, "title": "Uncategorized", "items": data["items"]}]


@pytest.mark.asyncio
async def test_groups_by_recipe(client, register, create_recipe):
    alice = await register("alice")
    recipe = await create_recipe(alice)
    await client.post(f"/api/recipes/{recipe['id']}/add-to-shopping-list", headers=alice)
    await _add(client, alice, item="bread")
    await _add(client, alice, item="ghost pepper", recipe_id=77)

    data = (await client.get("/api/shopping-list", headers=alice)).json()
    assert data["total"] == 4
    groups = [(g["recipe_id"], g["title"], len(g["items"])) for g in data["groups"]]
    assert groups == [
        (None, "Uncategorized", 1),
        (recipe["id"], "Tomato Soup", 2),
        (77, "Recipe 77", 1),
    ]


@pytest.mark.asyncio
async def test_empty_list_still_has_uncategorized_group(client, register):
    alice = await register("alice")
    data = (await client.get("/api/shopping-list", headers=alice)).json()
    assert data == {"items": [], "groups": [{"recipe_id": None, "title": "Uncategorized", "items": []}], "total": 0}


@pytest.mark.asyncio
async def test_update_item(client, register):
    alice = await register("alice")
    bob = await register("bob")
    item = await _add(client, alice, quantity="1")

    resp = await client.put(f"/api/shopping-list/{item['id']}", json={"checked": True}, headers=alice)
    assert resp.status_code == 200
    assert resp.json()["checked"] is True
    assert resp.json()["quantity"] == "1"

    # Someone else's item looks missing
    assert (await client.put(f"/api/shopping-list/{item['id']}", json={"checked": False}, headers=bob)).status_code == 404


@pytest.mark.asyncio
async def test_delete_and_clear(client, register):
    alice = await register("alice")
    bob = await register("bob")
    first = await _add(client, alice)
    await _add(client, alice, item="eggs")
    await _add(client, bob, item="bread")

    assert (await client.delete(f"/api/shopping-list/{first['id']}", headers=bob)).status_code == 404
    assert (await client.delete(f"/api/shopping-list/{first['id']}", headers=alice)).status_code == 204
    assert (await client.get("/api/shopping-list", headers=alice)).json()["total"] == 1

    assert (await client.delete("/api/shopping-list", headers=alice)).status_code == 204
    assert (await client.get("/api/shopping-list", headers=alice)).json()["total"] == 0
    assert (await client.get("/api/shopping-list", headers=bob)).json()["total"] == 1


@pytest.mark.asyncio
async def test_item_nutrition(client, register):
    alice = await register("alice")
    item = await _add(client, alice, item="apple", quantity="2", unit="small")

    unlinked = await client.get(f"/api/shopping-list/{item['id']}/nutrition", headers=alice)
    assert unlinked.status_code == 404

    linked = await client.put(
        f"/api/shopping-list/{item['id']}/external-ingredient",
        json={"external_ingredient_id": 9003},
        headers=alice,
    )
    assert linked.json()["external_ingredient_id"] == 9003

    resp = await client.get(f"/api/shopping-list/{item['id']}/nutrition", headers=alice)
    assert resp.status_code == 200
    data = resp.json()
    assert data["available"] is True
    assert data["amount"] == 2.0
    assert data["unit"] == "small"
    assert data["calories"] == 94.64
    assert data["carbs"] == 25.13


@pytest.mark.asyncio
async def test_item_nutrition_without_api_key(client, register):
    alice = await register("alice")
    item = await _add(client, alice, item="apple", external_ingredient_id=9003)

    unconfigured = NutritionClient(api_key="")
    app.state.nutrition = unconfigured
    try:
        resp = await client.get(f"/api/shopping-list/{item['id']}/nutrition", headers=alice)
        assert resp.status_code == 503
        assert resp.json() == {"available": False, "reason": NO_API_KEY}

        search = await client.get("/api/ingredients/search?q=apple", headers=alice)
        assert search.json() == {"available": False, "results": [], "reason": NO_API_KEY}
    finally:
        await unconfigured.aclose()


@pytest.mark.asyncio
async def test_ingredient_search(client, register):
    assert (await client.get("/api/ingredients/search?q=apple")).status_code == 401

    alice = await register("alice")
    resp = await client.get("/api/ingredients/search?q=apple", headers=alice)
    data = resp.json()
    assert data["available"] is True
    assert [r["id"] for r in data["results"]] == [9003, 9019]
