"""Storage contract shared by the in-memory and SQL backends.

Every lookup, update and delete signals a missing row with ``None`` / ``False``
rather than raising. No referential-integrity or uniqueness checks happen
here; request handlers own those. Derived reads that only combine other
operations (top recipes, grouped shopping list, meal plans for a day) live on
the base class so both backends order and round identically.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Any, Iterable, Optional

from pydantic import BaseModel

from src.models import (
    ActivityLog, ActivityLogCreate, Favorite, Ingredient, IngredientCreate,
    Instruction, InstructionCreate, MealPlan, MealPlanCreate, MealPlanUpdate,
    Recipe, RecipeCreate, RecipeUpdate, Review, ReviewCreate, ReviewUpdate,
    ShoppingListItem, ShoppingListItemCreate, ShoppingListItemUpdate,
    User, UserCreate, UserUpdate, meal_type_ordinal,
)

# Never overwritten by a partial update
_IMMUTABLE_FIELDS = frozenset({"id", "created_at"})


def changes_of(update: BaseModel | dict[str, Any]) -> dict[str, Any]:
    """Fields explicitly provided by the caller, for a shallow merge."""
    if isinstance(update, BaseModel):
        data = update.model_dump(exclude_unset=True)
    else:
        data = dict(update)
    return {k: v for k, v in data.items() if k not in _IMMUTABLE_FIELDS}


def average_rating(ratings: Iterable[int]) -> Optional[float]:
    """Arithmetic mean rounded to one decimal, or None with no ratings."""
    values = list(ratings)
    if not values:
        return None
    return round(sum(values) / len(values), 1)


def day_of(value: date | datetime) -> date:
    """Truncate a timestamp to its calendar day."""
    return value.date() if isinstance(value, datetime) else value


def group_shopping_items(
    items: Iterable[ShoppingListItem],
) -> dict[Optional[int], list[ShoppingListItem]]:
    """Group items by recipe id; the ``None`` (uncategorized) group always comes first."""
    groups: dict[Optional[int], list[ShoppingListItem]] = {None: []}
    for item in items:
        groups.setdefault(item.recipe_id, []).append(item)
    return groups


class Storage(ABC):
    """Async CRUD + derived reads over the nine entity collections."""

    backend: str = "abstract"

    async def init(self) -> None:
        """Prepare the backend (create tables, etc.)."""

    async def close(self) -> None:
        """Release backend resources."""

    # ── Users ────────────────────────────────────────────────────────────

    @abstractmethod
    async def get_user(self, user_id: int) -> Optional[User]: ...

    @abstractmethod
    async def get_user_by_username(self, username: str) -> Optional[User]: ...

    @abstractmethod
    async def get_user_by_email(self, email: str) -> Optional[User]: ...

    @abstractmethod
    async def create_user(self, data: UserCreate) -> User: ...

    @abstractmethod
    async def update_user(self, user_id: int, changes: UserUpdate | dict) -> Optional[User]: ...

    # ── Recipes ──────────────────────────────────────────────────────────

    @abstractmethod
    async def get_recipe(self, recipe_id: int) -> Optional[Recipe]: ...

    @abstractmethod
    async def get_recipes(self) -> list[Recipe]:
        """All recipes in insertion order."""

    @abstractmethod
    async def get_recipes_by_user(self, user_id: int) -> list[Recipe]: ...

    @abstractmethod
    async def get_recent_recipes(self, limit: int) -> list[Recipe]: ...

    @abstractmethod
    async def get_recipes_by_tag(self, tag: str, limit: Optional[int] = None) -> list[Recipe]: ...

    @abstractmethod
    async def search_recipes(self, query: str) -> list[Recipe]:
        """Case-insensitive substring match on title or description."""

    @abstractmethod
    async def create_recipe(self, data: RecipeCreate) -> Recipe: ...

    @abstractmethod
    async def update_recipe(self, recipe_id: int, changes: RecipeUpdate | dict) -> Optional[Recipe]: ...

    @abstractmethod
    async def delete_recipe(self, recipe_id: int, cascade: bool = False) -> bool:
        """Remove a recipe.

        With ``cascade`` its ingredients, instructions, reviews, favorites and
        meal plans go too; otherwise they are left orphaned.
        """

    async def get_top_recipes(self, limit: int) -> list[Recipe]:
        """Recipes by average rating, highest first; unrated recipes score 0."""
        return [recipe for recipe, _ in await self.get_top_rated(limit)]

    async def get_top_rated(self, limit: int) -> list[tuple[Recipe, Optional[float]]]:
        """Like ``get_top_recipes`` but paired with each average (None if unrated)."""
        if limit <= 0:
            return []
        recipes = await self.get_recipes()
        scores = await self.get_average_ratings()
        # sorted() is stable, so ties keep insertion order
        ranked = sorted(recipes, key=lambda r: scores.get(r.id) or 0, reverse=True)
        return [(r, scores.get(r.id)) for r in ranked[:limit]]

    # ── Ingredients & instructions ───────────────────────────────────────

    @abstractmethod
    async def get_ingredients_by_recipe(self, recipe_id: int) -> list[Ingredient]: ...

    @abstractmethod
    async def create_ingredient(self, data: IngredientCreate) -> Ingredient: ...

    @abstractmethod
    async def get_instructions_by_recipe(self, recipe_id: int) -> list[Instruction]:
        """Steps ordered by step_number ascending."""

    @abstractmethod
    async def create_instruction(self, data: InstructionCreate) -> Instruction: ...

    # ── Reviews ──────────────────────────────────────────────────────────

    @abstractmethod
    async def get_review(self, review_id: int) -> Optional[Review]: ...

    @abstractmethod
    async def get_reviews_by_recipe(self, recipe_id: int) -> list[Review]: ...

    @abstractmethod
    async def get_reviews_by_user(self, user_id: int) -> list[Review]: ...

    @abstractmethod
    async def create_review(self, data: ReviewCreate) -> Review: ...

    @abstractmethod
    async def update_review(self, review_id: int, changes: ReviewUpdate | dict) -> Optional[Review]: ...

    @abstractmethod
    async def delete_review(self, review_id: int) -> bool: ...

    async def get_average_rating(self, recipe_id: int) -> Optional[float]:
        reviews = await self.get_reviews_by_recipe(recipe_id)
        return average_rating(r.rating for r in reviews)

    async def get_average_ratings(self) -> dict[int, float]:
        """Average rating of every reviewed recipe, keyed by recipe id."""
        recipes = await self.get_recipes()
        result = {}
        for recipe in recipes:
            avg = await self.get_average_rating(recipe.id)
            if avg is not None:
                result[recipe.id] = avg
        return result

    # ── Favorites ────────────────────────────────────────────────────────

    @abstractmethod
    async def get_favorites(self, user_id: int) -> list[Recipe]:
        """Favorited recipes; favorites pointing at deleted recipes are skipped."""

    @abstractmethod
    async def add_favorite(self, user_id: int, recipe_id: int) -> Favorite:
        """Insert a favorite, silently replacing an existing one for the same pair."""

    @abstractmethod
    async def remove_favorite(self, user_id: int, recipe_id: int) -> bool: ...

    @abstractmethod
    async def is_favorite(self, user_id: int, recipe_id: int) -> bool: ...

    # ── Shopping list ────────────────────────────────────────────────────

    @abstractmethod
    async def get_shopping_list(self, user_id: int) -> list[ShoppingListItem]:
        """A user's items, oldest first."""

    @abstractmethod
    async def get_shopping_list_item(self, item_id: int) -> Optional[ShoppingListItem]: ...

    @abstractmethod
    async def add_to_shopping_list(self, data: ShoppingListItemCreate) -> ShoppingListItem: ...

    @abstractmethod
    async def update_shopping_list_item(
        self, item_id: int, changes: ShoppingListItemUpdate | dict,
    ) -> Optional[ShoppingListItem]: ...

    @abstractmethod
    async def delete_shopping_list_item(self, item_id: int) -> bool: ...

    @abstractmethod
    async def clear_shopping_list(self, user_id: int) -> bool: ...

    async def get_shopping_list_grouped(
        self, user_id: int,
    ) -> dict[Optional[int], list[ShoppingListItem]]:
        return group_shopping_items(await self.get_shopping_list(user_id))

    # ── Meal plans ───────────────────────────────────────────────────────

    @abstractmethod
    async def get_meal_plans(self, user_id: int) -> list[MealPlan]:
        """A user's plans ordered by planned_date ascending."""

    @abstractmethod
    async def get_meal_plan(self, plan_id: int) -> Optional[MealPlan]: ...

    @abstractmethod
    async def create_meal_plan(self, data: MealPlanCreate) -> MealPlan: ...

    @abstractmethod
    async def update_meal_plan(self, plan_id: int, changes: MealPlanUpdate | dict) -> Optional[MealPlan]: ...

    @abstractmethod
    async def delete_meal_plan(self, plan_id: int) -> bool: ...

    async def get_meal_plans_by_date(self, user_id: int, day: date | datetime) -> list[MealPlan]:
        """Plans on the same calendar day, breakfast → lunch → dinner → snack → other."""
        target = day_of(day)
        plans = [p for p in await self.get_meal_plans(user_id) if day_of(p.planned_date) == target]
        return sorted(plans, key=lambda p: meal_type_ordinal(p.meal_type))

    # ── Activity log ─────────────────────────────────────────────────────

    @abstractmethod
    async def get_activity_logs(self, user_id: int) -> list[ActivityLog]:
        """A user's activity, newest first."""

    @abstractmethod
    async def create_activity_log(self, data: ActivityLogCreate) -> ActivityLog: ...
