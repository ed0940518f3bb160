"""Meal planning API — recipes assigned to a date and a meal slot."""
from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel, Field

from src.api.deps import get_recipe_source, get_storage
from src.api.recipes import resolve_recipe
from src.auth import require_user
from src.db.storage import Storage
from src.models import MealPlan, MealPlanCreate, MealPlanUpdate, MealType, User
from src.services.activity import record_activity
from src.services.mealdb import MealDbClient

router = APIRouter(prefix="/api/meal-plans", tags=["meal-plans"])


# ── Schemas ──────────────────────────────────────────────────────────────────

class MealPlanRequest(BaseModel):
    recipe_id: int
    planned_date: datetime
    meal_type: MealType
    notes: Optional[str] = Field(None, max_length=500)


# ── Helpers ──────────────────────────────────────────────────────────────────

async def _owned_plan(plan_id: int, user: User, storage: Storage) -> MealPlan:
    plan = await storage.get_meal_plan(plan_id)
    if not plan or plan.user_id != user.id:
        raise HTTPException(404, "Meal plan not found")
    return plan


# ── Endpoints ────────────────────────────────────────────────────────────────

@router.get("", response_model=list[MealPlan])
async def list_meal_plans(user: User = Depends(require_user), storage: Storage = Depends(get_storage)):
    return await storage.get_meal_plans(user.id)


@router.get("/date/{day}")
async def meal_plans_for_day(
    day: date,
    user: User = Depends(require_user),
    storage: Storage = Depends(get_storage),
):
    """One day's plans in slot order (breakfast, lunch, dinner, snack), with recipe titles."""
    plans = await storage.get_meal_plans_by_date(user.id, day)
    out = []
    for plan in plans:
        recipe = await storage.get_recipe(plan.recipe_id)
        out.append({**plan.model_dump(mode="json"), "recipe_title": recipe.title if recipe else None})
    return out


@router.post("", status_code=201, response_model=MealPlan)
async def create_meal_plan(
    req: MealPlanRequest,
    user: User = Depends(require_user),
    storage: Storage = Depends(get_storage),
    mealdb: MealDbClient = Depends(get_recipe_source),
):
    if not await resolve_recipe(req.recipe_id, storage, mealdb):
        raise HTTPException(404, "Recipe not found")
    plan = await storage.create_meal_plan(MealPlanCreate(user_id=user.id, **req.model_dump()))
    await record_activity(storage, user.id, "plan_meal", "meal_plan", plan.id, plan.meal_type)
    return plan


@router.patch("/{plan_id}", response_model=MealPlan)
async def update_meal_plan(
    plan_id: int,
    req: MealPlanUpdate,
    user: User = Depends(require_user),
    storage: Storage = Depends(get_storage),
):
    await _owned_plan(plan_id, user, storage)
    changes = {k: v for k, v in req.model_dump(exclude_unset=True).items() if v is not None or k == "notes"}
    updated = await storage.update_meal_plan(plan_id, changes)
    if not updated:
        raise HTTPException(404, "Meal plan not found")
    return updated


@router.delete("/{plan_id}", status_code=204)
async def delete_meal_plan(
    plan_id: int,
    user: User = Depends(require_user),
    storage: Storage = Depends(get_storage),
):
    await _owned_plan(plan_id, user, storage)
    await storage.delete_meal_plan(plan_id)
    return Response(status_code=204)
