"""Shopping List API — per-user items grouped by the recipe they came from."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from src.api.deps import get_nutrition_client, get_storage
from src.auth import require_user
from src.db.storage import Storage, group_shopping_items
from src.models import ShoppingListItem, ShoppingListItemCreate, ShoppingListItemUpdate, User
from src.services.nutrition import NutritionClient
from src.services.results import Ok

router = APIRouter(prefix="/api", tags=["shopping-list"])

UNCATEGORIZED = "Uncategorized"


# ── Models ──────────────────────────────────────────────────────────────

class ShoppingItemRequest(BaseModel):
    item: str = Field(..., min_length=1, max_length=200)
    quantity: Optional[str] = Field(None, max_length=100)
    unit: Optional[str] = Field(None, max_length=50)
    checked: bool = False
    recipe_id: Optional[int] = None
    external_ingredient_id: Optional[int] = None


class ExternalIngredientRequest(BaseModel):
    external_ingredient_id: int


class ShoppingGroup(BaseModel):
    recipe_id: Optional[int]
    title: str
    items: list[ShoppingListItem]


class ShoppingListResponse(BaseModel):
    items: list[ShoppingListItem]
    groups: list[ShoppingGroup]
    total: int


# ── Quantity parsing ────────────────────────────────────────────────────

FRAC_MAP = {"½": 0.5, "¼": 0.25, "¾": 0.75, "⅓": 0.333, "⅔": 0.667, "⅛": 0.125}


def parse_amount(qty_str: Optional[str], default: float = 1.0) -> float:
    """Best-effort numeric amount from free-text quantity ("2", "1/2", "1½")."""
    if not qty_str or not qty_str.strip():
        return default
    qty_str = qty_str.strip()
    for sym, val in FRAC_MAP.items():
        if sym in qty_str:
            rest = qty_str.replace(sym, "").strip()
            try:
                return (float(rest) if rest else 0) + val
            except ValueError:
                return default
    if "/" in qty_str:
        num, _, den = qty_str.partition("/")
        try:
            return float(num) / float(den)
        except (ValueError, ZeroDivisionError):
            return default
    try:
        return float(qty_str.split()[0])
    except ValueError:
        return default


# ── Helpers ─────────────────────────────────────────────────────────────

async def _owned_item(item_id: int, user: User, storage: Storage) -> ShoppingListItem:
    item = await storage.get_shopping_list_item(item_id)
    # Foreign items look missing
    if not item or item.user_id != user.id:
        raise HTTPException(404, "Shopping list item not found")
    return item


# ── Endpoints ───────────────────────────────────────────────────────────

@router.get("/shopping-list", response_model=ShoppingListResponse)
async def get_shopping_list(user: User = Depends(require_user), storage: Storage = Depends(get_storage)):
    """The caller's items plus the same items grouped by recipe, uncategorized first."""
    items = await storage.get_shopping_list(user.id)
    groups = []
    for recipe_id, group_items in group_shopping_items(items).items():
        if recipe_id is None:
            title = UNCATEGORIZED
        else:
            recipe = await storage.get_recipe(recipe_id)
            title = recipe.title if recipe else f"Recipe {recipe_id}"
        groups.append(ShoppingGroup(recipe_id=recipe_id, title=title, items=group_items))
    return ShoppingListResponse(items=items, groups=groups, total=len(items))


@router.post("/shopping-list", status_code=201, response_model=ShoppingListItem)
async def add_item(
    req: ShoppingItemRequest,
    user: User = Depends(require_user),
    storage: Storage = Depends(get_storage),
):
    return await storage.add_to_shopping_list(ShoppingListItemCreate(user_id=user.id, **req.model_dump()))


@router.put("/shopping-list/{item_id}", response_model=ShoppingListItem)
async def update_item(
    item_id: int,
    req: ShoppingListItemUpdate,
    user: User = Depends(require_user),
    storage: Storage = Depends(get_storage),
):
    await _owned_item(item_id, user, storage)
    changes = req.model_dump(exclude_unset=True)
    for key in ("item", "checked"):
        if key in changes and changes[key] is None:
            del changes[key]
    updated = await storage.update_shopping_list_item(item_id, changes)
    if not updated:
        raise HTTPException(404, "Shopping list item not found")
    return updated


@router.put("/shopping-list/{item_id}/external-ingredient", response_model=ShoppingListItem)
async def link_external_ingredient(
    item_id: int,
    req: ExternalIngredientRequest,
    user: User = Depends(require_user),
    storage: Storage = Depends(get_storage),
):
    """Link an item to a Spoonacular ingredient id so nutrition can be looked up."""
    await _owned_item(item_id, user, storage)
    updated = await storage.update_shopping_list_item(
        item_id, {"external_ingredient_id": req.external_ingredient_id},
    )
    if not updated:
        raise HTTPException(404, "Shopping list item not found")
    return updated


@router.delete("/shopping-list/{item_id}", status_code=204)
async def delete_item(
    item_id: int,
    user: User = Depends(require_user),
    storage: Storage = Depends(get_storage),
):
    await _owned_item(item_id, user, storage)
    await storage.delete_shopping_list_item(item_id)
    return Response(status_code=204)


@router.delete("/shopping-list", status_code=204)
async def clear_list(user: User = Depends(require_user), storage: Storage = Depends(get_storage)):
    await storage.clear_shopping_list(user.id)
    return Response(status_code=204)


@router.get("/shopping-list/{item_id}/nutrition")
async def item_nutrition(
    item_id: int,
    user: User = Depends(require_user),
    storage: Storage = Depends(get_storage),
    nutrition: NutritionClient = Depends(get_nutrition_client),
):
    """Spoonacular nutrition facts for a linked item, scaled to its quantity."""
    item = await _owned_item(item_id, user, storage)
    if item.external_ingredient_id is None:
        raise HTTPException(404, "Item is not linked to an ingredient")

    amount = parse_amount(item.quantity)
    result = await nutrition.ingredient_nutrition(item.external_ingredient_id, amount, item.unit or "")
    if not isinstance(result, Ok):
        return JSONResponse(status_code=503, content={"available": False, "reason": result.reason})
    return {
        "available": True,
        "item_id": item.id,
        "amount": amount,
        "unit": item.unit or "",
        **result.value.model_dump(),
    }


@router.get("/ingredients/search")
async def search_ingredients(
    q: str = Query(..., min_length=1, max_length=100),
    user: User = Depends(require_user),
    nutrition: NutritionClient = Depends(get_nutrition_client),
):
    result = await nutrition.search_ingredients(q)
    if not isinstance(result, Ok):
        return {"available": False, "results": [], "reason": result.reason}
    return {"available": True, "results": [m.model_dump() for m in result.value]}
