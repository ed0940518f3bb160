"""Tests for registration, login, token refresh and the profile endpoints."""
from __future__ import annotations

import pytest

from src.api.main import app
from src.auth import create_tokens, hash_password, user_id_from_token, verify_password


class TestPasswords:
    def test_hash_round_trip(self):
        stored = hash_password("s3cret-pass")
        assert stored != "s3cret-pass"
        assert verify_password("s3cret-pass", stored)
        assert not verify_password("wrong", stored)

    def test_malformed_hash_rejected(self):
        assert not verify_password("anything", "no-separator")


class TestTokens:
    def test_access_and_refresh_are_distinct(self):
        tokens = create_tokens(7)
        assert user_id_from_token(tokens["access_token"]) == 7
        assert user_id_from_token(tokens["refresh_token"], token_type="refresh") == 7
        # A refresh token is not accepted as an access token, and vice versa
        assert user_id_from_token(tokens["refresh_token"]) is None
        assert user_id_from_token(tokens["access_token"], token_type="refresh") is None

    def test_tampered_token_rejected(self):
        token = create_tokens(7)["access_token"]
        header, body, sig = token.split(".")
        assert user_id_from_token(f"{header}.{body}.{sig[::-1]}") is None
        assert user_id_from_token("not-a-token") is None
        assert user_id_from_token("a.b.c") is None


# ── Registration & login ─────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_register_returns_user_and_tokens(client):
    resp = await client.post("/api/register", json={
        "username": "alice", "email": "alice@example.com", "name": "Alice", "password": "s3cret-pass",
    })
    assert resp.status_code == 201
    data = resp.json()
    assert data["user"]["username"] == "alice"
    assert data["user"]["id"] == 1
    assert "password" not in data["user"]
    assert data["token_type"] == "bearer"
    assert data["access_token"] and data["refresh_token"]


@pytest.mark.asyncio
async def test_register_duplicate_username_case_insensitive(client, register):
    await register("alice")
    resp = await client.post("/api/register", json={
        "username": "ALICE", "email": "other@example.com", "name": "A", "password": "s3cret-pass",
    })
    assert resp.status_code == 409
    assert resp.json()["message"] == "Username already taken"


@pytest.mark.asyncio
async def test_register_duplicate_email(client, register):
    await register("alice")
    resp = await client.post("/api/register", json={
        "username": "alice2", "email": "ALICE@example.com", "name": "A", "password": "s3cret-pass",
    })
    assert resp.status_code == 409
    assert resp.json()["message"] == "Email already registered"


@pytest.mark.asyncio
async def test_register_validates_input(client):
    resp = await client.post("/api/register", json={
        "username": "al", "email": "not-an-email", "name": "A", "password": "123",
    })
    assert resp.status_code == 422
    fields = {d["field"] for d in resp.json()["details"]}
    assert any("email" in f for f in fields)
    assert any("password" in f for f in fields)


@pytest.mark.asyncio
async def test_password_is_stored_hashed(client, register):
    await register("alice")
    stored = await app.state.storage.get_user_by_username("alice")
    assert stored.password != "s3cret-pass"
    assert verify_password("s3cret-pass", stored.password)


@pytest.mark.asyncio
async def test_login(client, register):
    await register("alice")
    resp = await client.post("/api/login", json={"username": "Alice", "password": "s3cret-pass"})
    assert resp.status_code == 200
    assert resp.json()["user"]["username"] == "alice"

    bad = await client.post("/api/login", json={"username": "alice", "password": "wrong-pass"})
    assert bad.status_code == 401
    missing = await client.post("/api/login", json={"username": "nobody", "password": "wrong-pass"})
    assert missing.status_code == 401


@pytest.mark.asyncio
async def test_refresh_issues_new_tokens(client):
    reg = await client.post("/api/register", json={
        "username": "alice", "email": "alice@example.com", "name": "Alice", "password": "s3cret-pass",
    })
    refresh_token = reg.json()["refresh_token"]

    resp = await client.post("/api/refresh", json={"refresh_token": refresh_token})
    assert resp.status_code == 200
    assert user_id_from_token(resp.json()["access_token"]) == 1

    # Access tokens can't be used to refresh
    bad = await client.post("/api/refresh", json={"refresh_token": reg.json()["access_token"]})
    assert bad.status_code == 401


# ── Profile ──────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_current_user_requires_auth(client, register):
    assert (await client.get("/api/user")).status_code == 401
    bogus = {"Authorization": "Bearer nonsense"}
    assert (await client.get("/api/user", headers=bogus)).status_code == 401

    headers = await register("alice")
    resp = await client.get("/api/user", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["email"] == "alice@example.com"


@pytest.mark.asyncio
async def test_update_profile(client, register):
    headers = await register("alice")
    resp = await client.patch("/api/user", json={"name": "Alice L.", "bio": "Cooks a lot"}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["name"] == "Alice L."
    assert resp.json()["bio"] == "Cooks a lot"
    assert resp.json()["username"] == "alice"


@pytest.mark.asyncio
async def test_update_profile_password_then_login(client, register):
    headers = await register("alice")
    await client.patch("/api/user", json={"password": "new-pass-123"}, headers=headers)
    old = await client.post("/api/login", json={"username": "alice", "password": "s3cret-pass"})
    new = await client.post("/api/login", json={"username": "alice", "password": "new-pass-123"})
    assert old.status_code == 401
    assert new.status_code == 200


@pytest.mark.asyncio
async def test_update_profile_email_conflict(client, register):
    await register("bob")
    headers = await register("alice")
    resp = await client.patch("/api/user", json={"email": "bob@example.com"}, headers=headers)
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_update_profile_validates_and_keeps_required_fields(client, register):
    headers = await register("alice")
    short = await client.patch("/api/user", json={"password": "abc"}, headers=headers)
    assert short.status_code == 422

    resp = await client.patch("/api/user", json={"name": None, "email": None, "bio": "Hi"}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["name"] == "Alice"
    assert resp.json()["email"] == "alice@example.com"
    assert resp.json()["bio"] == "Hi"


@pytest.mark.asyncio
async def test_activity_log(client, register, create_recipe):
    headers = await register("alice")
    await create_recipe(headers)
    resp = await client.get("/api/user/activity", headers=headers)
    assert resp.status_code == 200
    assert [a["action"] for a in resp.json()] == ["create_recipe", "register"]
