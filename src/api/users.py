"""Account routes — registration, login, token refresh, profile, activity."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from src.api.deps import get_storage
from src.auth import create_tokens, hash_password, require_user, user_id_from_token, verify_password
from src.db.storage import Storage
from src.models import User, UserCreate, UserUpdate
from src.services.activity import record_activity

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["users"])


# ── Schemas ──────────────────────────────────────────────────────────────────

class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=50)
    password: str = Field(..., min_length=1, max_length=256)


class RefreshRequest(BaseModel):
    refresh_token: str


def _session_payload(user: User) -> dict:
    return {"user": user.public(), **create_tokens(user.id)}


# ── Auth ─────────────────────────────────────────────────────────────────────

@router.post("/register", status_code=201)
async def register(req: UserCreate, storage: Storage = Depends(get_storage)):
    """Create an account and sign it in. Username and email are unique, case-insensitively."""
    if await storage.get_user_by_username(req.username):
        raise HTTPException(409, "Username already taken")
    if await storage.get_user_by_email(req.email):
        raise HTTPException(409, "Email already registered")

    user = await storage.create_user(req.model_copy(update={"password": hash_password(req.password)}))
    await record_activity(storage, user.id, "register", "user", user.id)
    logger.info("Registered user %s", user.id)
    return _session_payload(user)


@router.post("/login")
async def login(req: LoginRequest, storage: Storage = Depends(get_storage)):
    user = await storage.get_user_by_username(req.username)
    if not user or not verify_password(req.password, user.password):
        raise HTTPException(401, "Invalid username or password")
    return _session_payload(user)


@router.post("/refresh")
async def refresh(req: RefreshRequest, storage: Storage = Depends(get_storage)):
    """Exchange a valid refresh token for new access + refresh tokens."""
    user_id = user_id_from_token(req.refresh_token, token_type="refresh")
    if user_id is None:
        raise HTTPException(401, "Invalid or expired refresh token")
    user = await storage.get_user(user_id)
    if not user:
        raise HTTPException(401, "User not found")
    return _session_payload(user)


# ── Profile ──────────────────────────────────────────────────────────────────

@router.get("/user")
async def current_user(user: User = Depends(require_user)):
    return user.public()


@router.patch("/user")
async def update_profile(
    req: UserUpdate,
    user: User = Depends(require_user),
    storage: Storage = Depends(get_storage),
):
    changes = req.model_dump(exclude_unset=True)
    # Required profile fields can't be cleared
    for key in ("email", "name", "password"):
        if key in changes and changes[key] is None:
            del changes[key]
    if changes.get("email") and changes["email"].lower() != user.email.lower():
        owner = await storage.get_user_by_email(changes["email"])
        if owner and owner.id != user.id:
            raise HTTPException(409, "Email already registered")
    if changes.get("password"):
        changes["password"] = hash_password(changes["password"])

    updated = await storage.update_user(user.id, changes)
    if not updated:
        raise HTTPException(404, "User not found")
    return updated.public()


@router.get("/user/activity")
async def activity(user: User = Depends(require_user), storage: Storage = Depends(get_storage)):
    """The caller's activity log, newest first."""
    return await storage.get_activity_logs(user.id)
