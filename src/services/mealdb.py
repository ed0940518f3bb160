"""TheMealDB client — public recipe database used to pad sparse local listings.

Meals are normalized into local ``Recipe``/``Ingredient``/``Instruction``
models with ``user_id=0``. Nutrition, servings and difficulty are estimates
(see ``recipe_estimates``). Every public method returns ``Ok``/``Failure``.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Optional
from urllib.parse import urlparse

import httpx
from pydantic import BaseModel

from src.models import EXTERNAL_USER_ID, Ingredient, Instruction, Recipe, utcnow
from src.services.recipe_estimates import (
    MAX_INGREDIENT_SLOTS,
    difficulty_from_instructions,
    estimate_calories,
    estimate_macros,
    estimate_servings,
    split_steps,
)
from src.services.results import Failure, Ok, Result

logger = logging.getLogger(__name__)

MEALDB_API_URL = "https://www.themealdb.com/api/json/v1/1"
USER_AGENT = "Savora/1.0 (savora-api)"

DEFAULT_SOURCE = "TheMealDB"
DESCRIPTION_PREVIEW_CHARS = 200
ESTIMATED_PREP_MINUTES = 20
ESTIMATED_COOK_MINUTES = 40
CATEGORY_DETAIL_LIMIT = 10
POPULAR_CATEGORY_LIMIT = 8

# Upstream or decoding problems that become Failure results
_ADAPTER_ERRORS = (httpx.HTTPError, ValueError, KeyError, TypeError)


class ExternalRecipe(BaseModel):
    recipe: Recipe
    ingredients: list[Ingredient]
    instructions: list[Instruction]
    author_name: str


# ── Normalization ────────────────────────────────────────────────────────


def source_of(meal: dict) -> str:
    """Hostname of the meal's strSource link, else "TheMealDB"."""
    raw = (meal.get("strSource") or "").strip()
    if raw:
        host = urlparse(raw).hostname
        if host:
            return host
    return DEFAULT_SOURCE


def tags_of(meal: dict) -> list[str]:
    tags = [t.strip() for t in (meal.get("strTags") or "").split(",") if t.strip()]
    category = (meal.get("strCategory") or "").strip()
    if category and category not in tags:
        tags.append(category)
    return tags


def meal_to_recipe(meal: dict) -> Recipe:
    instructions = meal.get("strInstructions") or ""
    macros = estimate_macros(meal)
    return Recipe(
        id=int(meal["idMeal"]),
        title=meal["strMeal"],
        description=instructions[:DESCRIPTION_PREVIEW_CHARS] + "...",
        image_url=meal.get("strMealThumb") or "",
        prep_time=ESTIMATED_PREP_MINUTES,
        cook_time=ESTIMATED_COOK_MINUTES,
        difficulty=difficulty_from_instructions(instructions),
        calories=estimate_calories(meal),
        protein=macros.protein,
        fats=macros.fats,
        carbs=macros.carbs,
        servings=estimate_servings(meal),
        user_id=EXTERNAL_USER_ID,
        source=source_of(meal),
        tags=tags_of(meal) or None,
        created_at=utcnow(),
    )


def meal_ingredients(meal: dict, recipe_id: int) -> list[Ingredient]:
    """strIngredientN/strMeasureN pairs; the slot number doubles as the id."""
    ingredients = []
    for i in range(1, MAX_INGREDIENT_SLOTS + 1):
        name = meal.get(f"strIngredient{i}")
        if not name or not name.strip():
            continue
        measure = meal.get(f"strMeasure{i}") or ""
        ingredients.append(Ingredient(
            id=i,
            recipe_id=recipe_id,
            name=name.strip(),
            quantity=measure.strip(),
            unit="",
        ))
    return ingredients


def meal_instructions(meal: dict, recipe_id: int) -> list[Instruction]:
    return [
        Instruction(id=n, recipe_id=recipe_id, step_number=n, description=step)
        for n, step in enumerate(split_steps(meal.get("strInstructions")), start=1)
    ]


# ── Client ───────────────────────────────────────────────────────────────


class MealDbClient:
    """Async TheMealDB client. Owns one pooled ``httpx.AsyncClient``."""

    def __init__(
        self,
        base_url: str = MEALDB_API_URL,
        timeout: float = 8.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _get(self, path: str, **params) -> dict:
        resp = await self._client.get(path, params=params or None)
        resp.raise_for_status()
        data = resp.json()
        if not isinstance(data, dict):
            raise ValueError(f"unexpected payload from {path}")
        return data

    async def _lookup(self, meal_id: int | str) -> Optional[dict]:
        data = await self._get("lookup.php", i=meal_id)
        meals = data.get("meals") or []
        return meals[0] if meals else None

    async def _random_one(self) -> Optional[Recipe]:
        try:
            data = await self._get("random.php")
            meals = data.get("meals") or []
            return meal_to_recipe(meals[0]) if meals else None
        except _ADAPTER_ERRORS as e:
            logger.warning("TheMealDB random meal failed: %s", e)
            return None

    async def _detailed(self, meal_id: str) -> Optional[Recipe]:
        try:
            meal = await self._lookup(meal_id)
            return meal_to_recipe(meal) if meal else None
        except _ADAPTER_ERRORS as e:
            logger.warning("TheMealDB lookup %s failed: %s", meal_id, e)
            return None

    async def random_meals(self, count: int = 10) -> Result[list[Recipe]]:
        """``count`` random meals fetched concurrently; failed calls are dropped."""
        if count <= 0:
            return Ok([])
        results = await asyncio.gather(*(self._random_one() for _ in range(count)))
        return Ok([r for r in results if r is not None])

    async def meals_by_category(self, category: str) -> Result[list[Recipe]]:
        """First ten meals in a category, each expanded with a full lookup."""
        try:
            data = await self._get("filter.php", c=category)
        except _ADAPTER_ERRORS as e:
            logger.warning("TheMealDB category %r failed: %s", category, e)
            return Failure(f"category lookup failed: {e}")

        summaries = (data.get("meals") or [])[:CATEGORY_DETAIL_LIMIT]
        details = await asyncio.gather(*(self._detailed(m["idMeal"]) for m in summaries if m.get("idMeal")))
        return Ok([r for r in details if r is not None])

    async def recipe_details(self, meal_id: int) -> Result[ExternalRecipe]:
        try:
            meal = await self._lookup(meal_id)
            if meal is None:
                return Failure("not found")
            recipe = meal_to_recipe(meal)
        except _ADAPTER_ERRORS as e:
            logger.warning("TheMealDB details for %s failed: %s", meal_id, e)
            return Failure(f"lookup failed: {e}")

        return Ok(ExternalRecipe(
            recipe=recipe,
            ingredients=meal_ingredients(meal, recipe.id),
            instructions=meal_instructions(meal, recipe.id),
            author_name=source_of(meal),
        ))

    async def popular_categories(self) -> Result[list[str]]:
        try:
            data = await self._get("categories.php")
        except _ADAPTER_ERRORS as e:
            logger.warning("TheMealDB categories failed: %s", e)
            return Failure(f"categories failed: {e}")
        categories = data.get("categories") or []
        return Ok([c["strCategory"] for c in categories[:POPULAR_CATEGORY_LIMIT] if c.get("strCategory")])

    async def search_meals(self, query: str) -> Result[list[Recipe]]:
        try:
            data = await self._get("search.php", s=query)
            recipes = [meal_to_recipe(m) for m in data.get("meals") or []]
        except _ADAPTER_ERRORS as e:
            logger.warning("TheMealDB search %r failed: %s", query, e)
            return Failure(f"search failed: {e}")
        logger.debug("TheMealDB search %r → %d meals", query, len(recipes))
        return Ok(recipes)
