"""In-process storage backend — one arena table per entity type.

Data lives only as long as the process. Suitable for development, tests and
demos; use the SQL backend for anything that must survive a restart.
"""
from __future__ import annotations

import logging
from typing import Callable, Generic, Iterator, Optional, TypeVar

from pydantic import BaseModel

from src.db.storage import Storage, changes_of
from src.models import (
    ActivityLog, ActivityLogCreate, Favorite, Ingredient, IngredientCreate,
    Instruction, InstructionCreate, MealPlan, MealPlanCreate, MealPlanUpdate,
    Recipe, RecipeCreate, RecipeUpdate, Review, ReviewCreate, ReviewUpdate,
    ShoppingListItem, ShoppingListItemCreate, ShoppingListItemUpdate,
    User, UserCreate, UserUpdate, utcnow,
)

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


class _Table(Generic[M]):
    """Id-keyed rows plus a monotonically increasing id counter.

    Rows handed out are deep copies, so callers can't mutate stored state.
    """

    def __init__(self, model: type[M]):
        self.model = model
        self._rows: dict[int, M] = {}
        self._next_id = 1

    def insert(self, data: BaseModel) -> M:
        fields = data.model_dump()
        fields["id"] = self._next_id
        if "created_at" in self.model.model_fields:
            fields["created_at"] = utcnow()
        row = self.model(**fields)
        self._rows[row.id] = row
        self._next_id += 1
        return row.model_copy(deep=True)

    def get(self, row_id: int) -> Optional[M]:
        row = self._rows.get(row_id)
        return row.model_copy(deep=True) if row else None

    def update(self, row_id: int, changes: BaseModel | dict) -> Optional[M]:
        existing = self._rows.get(row_id)
        if existing is None:
            return None
        merged = self.model.model_validate({**existing.model_dump(), **changes_of(changes)})
        self._rows[row_id] = merged
        return merged.model_copy(deep=True)

    def delete(self, row_id: int) -> bool:
        return self._rows.pop(row_id, None) is not None

    def delete_where(self, predicate: Callable[[M], bool]) -> int:
        doomed = [row_id for row_id, row in self._rows.items() if predicate(row)]
        for row_id in doomed:
            del self._rows[row_id]
        return len(doomed)

    def select(self, predicate: Callable[[M], bool] | None = None) -> list[M]:
        return [r.model_copy(deep=True) for r in self._iter() if predicate is None or predicate(r)]

    def find(self, predicate: Callable[[M], bool]) -> Optional[M]:
        for row in self._iter():
            if predicate(row):
                return row.model_copy(deep=True)
        return None

    def _iter(self) -> Iterator[M]:
        return iter(list(self._rows.values()))

    def __len__(self) -> int:
        return len(self._rows)


def _newest_first(rows: list[M]) -> list[M]:
    return sorted(rows, key=lambda r: (r.created_at, r.id), reverse=True)


def _oldest_first(rows: list[M]) -> list[M]:
    return sorted(rows, key=lambda r: (r.created_at, r.id))


class MemoryStorage(Storage):
    """Storage backed by plain dicts; single event loop, no locking."""

    backend = "memory"

    def __init__(self):
        self.users: _Table[User] = _Table(User)
        self.recipes: _Table[Recipe] = _Table(Recipe)
        self.ingredients: _Table[Ingredient] = _Table(Ingredient)
        self.instructions: _Table[Instruction] = _Table(Instruction)
        self.reviews: _Table[Review] = _Table(Review)
        self.favorites: dict[tuple[int, int], Favorite] = {}
        self.shopping_items: _Table[ShoppingListItem] = _Table(ShoppingListItem)
        self.meal_plans: _Table[MealPlan] = _Table(MealPlan)
        self.activity_logs: _Table[ActivityLog] = _Table(ActivityLog)

    # ── Users ────────────────────────────────────────────────────────────

    async def get_user(self, user_id: int) -> Optional[User]:
        return self.users.get(user_id)

    async def get_user_by_username(self, username: str) -> Optional[User]:
        needle = username.lower()
        return self.users.find(lambda u: u.username.lower() == needle)

    async def get_user_by_email(self, email: str) -> Optional[User]:
        needle = email.lower()
        return self.users.find(lambda u: u.email.lower() == needle)

    async def create_user(self, data: UserCreate) -> User:
        return self.users.insert(data)

    async def update_user(self, user_id: int, changes: UserUpdate | dict) -> Optional[User]:
        return self.users.update(user_id, changes)

    # ── Recipes ──────────────────────────────────────────────────────────

    async def get_recipe(self, recipe_id: int) -> Optional[Recipe]:
        return self.recipes.get(recipe_id)

    async def get_recipes(self) -> list[Recipe]:
        return self.recipes.select()

    async def get_recipes_by_user(self, user_id: int) -> list[Recipe]:
        return self.recipes.select(lambda r: r.user_id == user_id)

    async def get_recent_recipes(self, limit: int) -> list[Recipe]:
        if limit <= 0:
            return []
        return _newest_first(self.recipes.select())[:limit]

    async def get_recipes_by_tag(self, tag: str, limit: Optional[int] = None) -> list[Recipe]:
        matches = self.recipes.select(lambda r: bool(r.tags) and tag in r.tags)
        if limit is None:
            return matches
        return matches[:max(limit, 0)]

    async def search_recipes(self, query: str) -> list[Recipe]:
        needle = query.lower().strip()
        if not needle:
            return []
        return self.recipes.select(
            lambda r: needle in r.title.lower() or needle in (r.description or "").lower()
        )

    async def create_recipe(self, data: RecipeCreate) -> Recipe:
        return self.recipes.insert(data)

    async def update_recipe(self, recipe_id: int, changes: RecipeUpdate | dict) -> Optional[Recipe]:
        return self.recipes.update(recipe_id, changes)

    async def delete_recipe(self, recipe_id: int, cascade: bool = False) -> bool:
        deleted = self.recipes.delete(recipe_id)
        if deleted and cascade:
            def owned(row) -> bool:
                return row.recipe_id == recipe_id

            removed = (
                self.ingredients.delete_where(owned)
                + self.instructions.delete_where(owned)
                + self.reviews.delete_where(owned)
                + self.meal_plans.delete_where(owned)
            )
            for key in [k for k in self.favorites if k[1] == recipe_id]:
                del self.favorites[key]
                removed += 1
            logger.debug("Cascade delete of recipe %s removed %d child rows", recipe_id, removed)
        return deleted

    # ── Ingredients & instructions ───────────────────────────────────────

    async def get_ingredients_by_recipe(self, recipe_id: int) -> list[Ingredient]:
        return self.ingredients.select(lambda i: i.recipe_id == recipe_id)

    async def create_ingredient(self, data: IngredientCreate) -> Ingredient:
        return self.ingredients.insert(data)

    async def get_instructions_by_recipe(self, recipe_id: int) -> list[Instruction]:
        steps = self.instructions.select(lambda i: i.recipe_id == recipe_id)
        return sorted(steps, key=lambda i: i.step_number)

    async def create_instruction(self, data: InstructionCreate) -> Instruction:
        return self.instructions.insert(data)

    # ── Reviews ──────────────────────────────────────────────────────────

    async def get_review(self, review_id: int) -> Optional[Review]:
        return self.reviews.get(review_id)

    async def get_reviews_by_recipe(self, recipe_id: int) -> list[Review]:
        return _newest_first(self.reviews.select(lambda r: r.recipe_id == recipe_id))

    async def get_reviews_by_user(self, user_id: int) -> list[Review]:
        return _newest_first(self.reviews.select(lambda r: r.user_id == user_id))

    async def create_review(self, data: ReviewCreate) -> Review:
        return self.reviews.insert(data)

    async def update_review(self, review_id: int, changes: ReviewUpdate | dict) -> Optional[Review]:
        return self.reviews.update(review_id, changes)

    async def delete_review(self, review_id: int) -> bool:
        return self.reviews.delete(review_id)

    # ── Favorites ────────────────────────────────────────────────────────

    async def get_favorites(self, user_id: int) -> list[Recipe]:
        recipes = []
        for fav in list(self.favorites.values()):
            if fav.user_id != user_id:
                continue
            recipe = self.recipes.get(fav.recipe_id)
            if recipe is not None:
                recipes.append(recipe)
        return recipes

    async def add_favorite(self, user_id: int, recipe_id: int) -> Favorite:
        favorite = Favorite(user_id=user_id, recipe_id=recipe_id, created_at=utcnow())
        # Re-adding moves the favorite to the end, like a fresh row
        self.favorites.pop(favorite.key, None)
        self.favorites[favorite.key] = favorite
        return favorite.model_copy()

    async def remove_favorite(self, user_id: int, recipe_id: int) -> bool:
        return self.favorites.pop((user_id, recipe_id), None) is not None

    async def is_favorite(self, user_id: int, recipe_id: int) -> bool:
        return (user_id, recipe_id) in self.favorites

    # ── Shopping list ────────────────────────────────────────────────────

    async def get_shopping_list(self, user_id: int) -> list[ShoppingListItem]:
        return _oldest_first(self.shopping_items.select(lambda i: i.user_id == user_id))

    async def get_shopping_list_item(self, item_id: int) -> Optional[ShoppingListItem]:
        return self.shopping_items.get(item_id)

    async def add_to_shopping_list(self, data: ShoppingListItemCreate) -> ShoppingListItem:
        return self.shopping_items.insert(data)

    async def update_shopping_list_item(
        self, item_id: int, changes: ShoppingListItemUpdate | dict,
    ) -> Optional[ShoppingListItem]:
        return self.shopping_items.update(item_id, changes)

    async def delete_shopping_list_item(self, item_id: int) -> bool:
        return self.shopping_items.delete(item_id)

    async def clear_shopping_list(self, user_id: int) -> bool:
        self.shopping_items.delete_where(lambda i: i.user_id == user_id)
        return True

    # ── Meal plans ───────────────────────────────────────────────────────

    async def get_meal_plans(self, user_id: int) -> list[MealPlan]:
        plans = self.meal_plans.select(lambda p: p.user_id == user_id)
        return sorted(plans, key=lambda p: p.planned_date)

    async def get_meal_plan(self, plan_id: int) -> Optional[MealPlan]:
        return self.meal_plans.get(plan_id)

    async def create_meal_plan(self, data: MealPlanCreate) -> MealPlan:
        return self.meal_plans.insert(data)

    async def update_meal_plan(self, plan_id: int, changes: MealPlanUpdate | dict) -> Optional[MealPlan]:
        return self.meal_plans.update(plan_id, changes)

    async def delete_meal_plan(self, plan_id: int) -> bool:
        return self.meal_plans.delete(plan_id)

    # ── Activity log ─────────────────────────────────────────────────────

    async def get_activity_logs(self, user_id: int) -> list[ActivityLog]:
        return _newest_first(self.activity_logs.select(lambda a: a.user_id == user_id))

    async def create_activity_log(self, data: ActivityLogCreate) -> ActivityLog:
        return self.activity_logs.insert(data)
