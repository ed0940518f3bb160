"""Favorites API — per-user recipe bookmarks."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel

from src.api.deps import get_storage
from src.auth import require_user
from src.db.storage import Storage
from src.models import Favorite, Recipe, User
from src.services.activity import record_activity

router = APIRouter(prefix="/api", tags=["favorites"])


class FavoriteRequest(BaseModel):
    recipe_id: int


@router.get("/favorites", response_model=list[Recipe])
async def list_favorites(user: User = Depends(require_user), storage: Storage = Depends(get_storage)):
    return await storage.get_favorites(user.id)


@router.post("/favorites", status_code=201, response_model=Favorite)
async def add_favorite(
    req: FavoriteRequest,
    user: User = Depends(require_user),
    storage: Storage = Depends(get_storage),
):
    if not await storage.get_recipe(req.recipe_id):
        raise HTTPException(404, "Recipe not found")
    if await storage.is_favorite(user.id, req.recipe_id):
        raise HTTPException(409, "Recipe is already a favorite")

    favorite = await storage.add_favorite(user.id, req.recipe_id)
    await record_activity(storage, user.id, "favorite", "recipe", req.recipe_id)
    return favorite


@router.delete("/favorites/{recipe_id}", status_code=204)
async def remove_favorite(
    recipe_id: int,
    user: User = Depends(require_user),
    storage: Storage = Depends(get_storage),
):
    if not await storage.remove_favorite(user.id, recipe_id):
        raise HTTPException(404, "Favorite not found")
    await record_activity(storage, user.id, "unfavorite", "recipe", recipe_id)
    return Response(status_code=204)


@router.get("/recipes/{recipe_id}/favorite")
async def favorite_status(
    recipe_id: int,
    user: User = Depends(require_user),
    storage: Storage = Depends(get_storage),
):
    return {"is_favorite": await storage.is_favorite(user.id, recipe_id)}
