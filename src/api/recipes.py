"""Recipe routes — listings, detail, CRUD and the TheMealDB fallback."""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from pydantic import BaseModel, Field

from config.settings import settings
from src.api.deps import get_recipe_source, get_storage
from src.auth import require_user
from src.db.storage import Storage
from src.models import (
    IngredientCreate, IngredientFields, InstructionCreate, InstructionFields,
    Recipe, RecipeCreate, RecipeFields, RecipeUpdate, ShoppingListItemCreate, User,
)
from src.services.activity import record_activity
from src.services.catalog import backfill
from src.services.mealdb import MealDbClient
from src.services.results import Ok

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["recipes"])

UNKNOWN_AUTHOR = "Unknown"

_REQUIRED_RECIPE_FIELDS = ("title", "description", "image_url", "prep_time", "cook_time", "difficulty")


# ── Schemas ──────────────────────────────────────────────────────────────────

class RecipeSubmission(BaseModel):
    recipe: RecipeFields
    ingredients: list[IngredientFields] = Field(default_factory=list, max_length=100)
    instructions: list[InstructionFields] = Field(default_factory=list, max_length=100)


# ── Helpers ──────────────────────────────────────────────────────────────────

async def _owned_recipe(recipe_id: int, user: User, storage: Storage) -> Recipe:
    recipe = await storage.get_recipe(recipe_id)
    if not recipe:
        raise HTTPException(404, "Recipe not found")
    if recipe.user_id != user.id:
        raise HTTPException(403, "Not authorized to modify this recipe")
    return recipe


async def resolve_recipe(recipe_id: int, storage: Storage, mealdb: MealDbClient) -> Optional[Recipe]:
    """A local recipe, else the TheMealDB meal with that id, else None."""
    recipe = await storage.get_recipe(recipe_id)
    if recipe:
        return recipe
    result = await mealdb.recipe_details(recipe_id)
    return result.value.recipe if isinstance(result, Ok) else None


async def _padded(local: list[Recipe], fetch, count: int) -> list[Recipe]:
    if not settings.EXTERNAL_BACKFILL:
        return local[:count]
    return await backfill(local, fetch, count)


# ── Listings ─────────────────────────────────────────────────────────────────

@router.get("/recipes", response_model=list[Recipe])
async def list_recipes(
    count: int = Query(12, ge=1, le=100),
    storage: Storage = Depends(get_storage),
    mealdb: MealDbClient = Depends(get_recipe_source),
):
    """Local recipes, topped up with random TheMealDB meals when there are fewer than ``count``."""
    local = await storage.get_recipes()
    return await _padded(local, lambda: mealdb.random_meals(count - len(local)), count)


@router.get("/recipes/top")
async def top_recipes(limit: int = Query(4, le=100), storage: Storage = Depends(get_storage)):
    ranked = await storage.get_top_rated(limit)
    return [{**r.model_dump(mode="json"), "average_rating": avg} for r, avg in ranked]


@router.get("/recipes/recent", response_model=list[Recipe])
async def recent_recipes(limit: int = Query(3, le=100), storage: Storage = Depends(get_storage)):
    return await storage.get_recent_recipes(limit)


@router.get("/recipes/user", response_model=list[Recipe])
async def my_recipes(user: User = Depends(require_user), storage: Storage = Depends(get_storage)):
    return await storage.get_recipes_by_user(user.id)


@router.get("/recipes/search", response_model=list[Recipe])
async def search_recipes(
    q: str = Query(..., min_length=1, max_length=200),
    limit: int = Query(20, ge=1, le=100),
    storage: Storage = Depends(get_storage),
    mealdb: MealDbClient = Depends(get_recipe_source),
):
    """Local title/description matches first, then TheMealDB search results."""
    local = await storage.search_recipes(q)
    return await _padded(local, lambda: mealdb.search_meals(q), limit)


@router.get("/recipes/tag/{tag}", response_model=list[Recipe])
async def recipes_by_tag(
    tag: str,
    limit: Optional[int] = Query(None, ge=0, le=100),
    storage: Storage = Depends(get_storage),
):
    return await storage.get_recipes_by_tag(tag, limit)


@router.get("/recipes/category/{category}", response_model=list[Recipe])
async def recipes_by_category(
    category: str,
    limit: int = Query(10, ge=1, le=100),
    storage: Storage = Depends(get_storage),
    mealdb: MealDbClient = Depends(get_recipe_source),
):
    """Local recipes tagged with the category, then TheMealDB meals in it."""
    local = await storage.get_recipes_by_tag(category)
    return await _padded(local, lambda: mealdb.meals_by_category(category), limit)


@router.get("/categories")
async def categories(mealdb: MealDbClient = Depends(get_recipe_source)):
    result = await mealdb.popular_categories()
    if isinstance(result, Ok):
        return result.value
    logger.warning("Categories unavailable: %s", result.reason)
    return []


# ── Detail ───────────────────────────────────────────────────────────────────

@router.get("/recipes/{recipe_id}")
async def get_recipe(
    recipe_id: int,
    storage: Storage = Depends(get_storage),
    mealdb: MealDbClient = Depends(get_recipe_source),
):
    """Recipe with ingredients, instructions and author name.

    Ids not found locally are looked up on TheMealDB.
    """
    recipe = await storage.get_recipe(recipe_id)
    if recipe:
        author = await storage.get_user(recipe.user_id)
        ingredients = await storage.get_ingredients_by_recipe(recipe_id)
        instructions = await storage.get_instructions_by_recipe(recipe_id)
        author_name = author.name if author else UNKNOWN_AUTHOR
    else:
        result = await mealdb.recipe_details(recipe_id)
        if not isinstance(result, Ok):
            raise HTTPException(404, "Recipe not found")
        external = result.value
        recipe, ingredients, instructions = external.recipe, external.ingredients, external.instructions
        author_name = external.author_name

    return {
        **recipe.model_dump(mode="json"),
        "ingredients": [i.model_dump() for i in ingredients],
        "instructions": [s.model_dump() for s in instructions],
        "author_name": author_name,
    }


# ── Create / update / delete ─────────────────────────────────────────────────

@router.post("/recipes", status_code=201)
async def create_recipe(
    req: RecipeSubmission,
    user: User = Depends(require_user),
    storage: Storage = Depends(get_storage),
):
    """Create a recipe with its ingredients and steps. The caller becomes the owner."""
    recipe = await storage.create_recipe(RecipeCreate(**req.recipe.model_dump(), user_id=user.id))
    ingredients = [
        await storage.create_ingredient(IngredientCreate(**i.model_dump(), recipe_id=recipe.id))
        for i in req.ingredients
    ]
    instructions = [
        await storage.create_instruction(InstructionCreate(**s.model_dump(), recipe_id=recipe.id))
        for s in req.instructions
    ]
    await record_activity(storage, user.id, "create_recipe", "recipe", recipe.id, recipe.title)
    return {"recipe": recipe, "ingredients": ingredients, "instructions": instructions}


@router.put("/recipes/{recipe_id}", response_model=Recipe)
async def update_recipe(
    recipe_id: int,
    req: RecipeUpdate,
    user: User = Depends(require_user),
    storage: Storage = Depends(get_storage),
):
    await _owned_recipe(recipe_id, user, storage)
    changes = req.model_dump(exclude_unset=True)
    # Nutrition, rating, source, tips and tags may be cleared; the rest can't
    for key in _REQUIRED_RECIPE_FIELDS:
        if key in changes and changes[key] is None:
            del changes[key]
    updated = await storage.update_recipe(recipe_id, changes)
    if not updated:
        raise HTTPException(404, "Recipe not found")
    await record_activity(storage, user.id, "update_recipe", "recipe", recipe_id)
    return updated


@router.delete("/recipes/{recipe_id}", status_code=204)
async def delete_recipe(
    recipe_id: int,
    user: User = Depends(require_user),
    storage: Storage = Depends(get_storage),
):
    """Delete a recipe along with its ingredients, steps, reviews, favorites and meal plans."""
    await _owned_recipe(recipe_id, user, storage)
    await storage.delete_recipe(recipe_id, cascade=True)
    await record_activity(storage, user.id, "delete_recipe", "recipe", recipe_id)
    return Response(status_code=204)


@router.post("/recipes/{recipe_id}/add-to-shopping-list", status_code=201)
async def add_recipe_to_shopping_list(
    recipe_id: int,
    user: User = Depends(require_user),
    storage: Storage = Depends(get_storage),
    mealdb: MealDbClient = Depends(get_recipe_source),
):
    """Copy every ingredient of a recipe into the caller's shopping list."""
    if await storage.get_recipe(recipe_id):
        ingredients = await storage.get_ingredients_by_recipe(recipe_id)
    else:
        result = await mealdb.recipe_details(recipe_id)
        if not isinstance(result, Ok):
            raise HTTPException(404, "Recipe not found")
        ingredients = result.value.ingredients

    items = [
        await storage.add_to_shopping_list(ShoppingListItemCreate(
            user_id=user.id,
            item=i.name,
            quantity=i.quantity or None,
            unit=i.unit or None,
            recipe_id=recipe_id,
        ))
        for i in ingredients
    ]
    await record_activity(storage, user.id, "add_to_shopping_list", "recipe", recipe_id, f"{len(items)} items")
    return items
