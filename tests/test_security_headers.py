"""Tests for security headers middleware."""
import pytest


@pytest.mark.asyncio
async def test_security_headers_present(client):
    resp = await client.get("/health")
    assert resp.headers["x-content-type-options"] == "nosniff"
    assert resp.headers["x-frame-options"] == "DENY"
    assert "strict-origin" in resp.headers["referrer-policy"]
    assert "camera=()" in resp.headers["permissions-policy"]
    assert "max-age=31536000" in resp.headers["strict-transport-security"]


@pytest.mark.asyncio
async def test_auth_endpoints_no_cache(client):
    resp = await client.post("/api/login", json={"username": "x", "password": "wrong"})
    assert resp.status_code == 401
    assert "no-store" in resp.headers.get("cache-control", "")
    assert resp.headers.get("pragma") == "no-cache"


@pytest.mark.asyncio
async def test_user_data_endpoints_no_cache(client):
    for path in ("/api/user", "/api/favorites", "/api/shopping-list", "/api/meal-plans"):
        resp = await client.get(path)
        assert "no-store" in resp.headers.get("cache-control", ""), path


@pytest.mark.asyncio
async def test_public_endpoints_no_strict_cache(client):
    resp = await client.get("/api/recipes/recent")
    assert "no-store" not in resp.headers.get("cache-control", "")
