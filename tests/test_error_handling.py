"""Tests for structured error responses."""
from __future__ import annotations

import pytest


@pytest.mark.asyncio
async def test_404_returns_structured_error(client):
    resp = await client.get("/api/recipes/12345")
    assert resp.status_code == 404
    data = resp.json()
    assert data == {"error": "Recipe not found", "message": "Recipe not found"}


@pytest.mark.asyncio
async def test_unknown_route_uses_same_envelope(client):
    resp = await client.get("/api/nope")
    assert resp.status_code == 404
    assert set(resp.json()) == {"error", "message"}


@pytest.mark.asyncio
async def test_validation_error_returns_structured_error(client):
    resp = await client.get("/api/recipes/search?q=")
    assert resp.status_code == 422
    data = resp.json()
    assert data["error"] == "validation_error"
    assert isinstance(data["details"], list)
    assert data["details"][0]["field"] == "query → q"


@pytest.mark.asyncio
async def test_non_integer_id_is_validation_error(client):
    resp = await client.get("/api/recipes/abc/reviews")
    assert resp.status_code == 422
    assert resp.json()["error"] == "validation_error"


@pytest.mark.asyncio
async def test_auth_error_envelope(client):
    resp = await client.get("/api/user")
    assert resp.status_code == 401
    assert resp.json()["message"] == "Authentication required"


@pytest.mark.asyncio
async def test_root_and_health(client):
    root = await client.get("/")
    assert root.json() == {"app": "Savora", "version": "1.0.0", "backend": "memory"}

    health = await client.get("/health")
    assert health.json() == {"status": "ok", "backend": "memory", "version": "1.0.0"}
