"""SQL storage backend — SQLAlchemy async CRUD + Pydantic conversion."""
from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Optional, TypeVar

from pydantic import BaseModel
from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncEngine

from src.db.engine import build_engine, build_session_factory
from src.db.storage import Storage, changes_of
from src.db.tables import (
    ActivityLogRow, Base, FavoriteRow, IngredientRow, InstructionRow, MealPlanRow,
    RecipeRow, ReviewRow, ShoppingListItemRow, UserRow,
)
from src.models import (
    ActivityLog, ActivityLogCreate, Favorite, Ingredient, IngredientCreate,
    Instruction, InstructionCreate, MealPlan, MealPlanCreate, MealPlanUpdate,
    Recipe, RecipeCreate, RecipeUpdate, Review, ReviewCreate, ReviewUpdate,
    ShoppingListItem, ShoppingListItemCreate, ShoppingListItemUpdate,
    User, UserCreate, UserUpdate, utcnow,
)

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def _escape_like(value: str) -> str:
    """Escape LIKE wildcard characters in user input."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _column_values(fields: dict[str, Any]) -> dict[str, Any]:
    # Enum members are stored by value
    return {k: (v.value if isinstance(v, Enum) else v) for k, v in fields.items()}


class SqlStorage(Storage):
    """Storage backed by SQLAlchemy — SQLite for dev, PostgreSQL in prod.

    Each operation runs in its own short session and commits before
    returning, so every call is atomic on its own.
    """

    backend = "sql"

    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self._session = build_session_factory(engine)

    @classmethod
    def from_url(cls, url: str, **engine_overrides) -> "SqlStorage":
        return cls(build_engine(url, **engine_overrides))

    async def init(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("SQL storage ready (%s)", self.engine.url.get_backend_name())

    async def close(self) -> None:
        await self.engine.dispose()

    # ── Generic helpers ──────────────────────────────────────────────────

    async def _insert(self, row_cls, model: type[M], data: BaseModel, **extra) -> M:
        fields = _column_values(data.model_dump())
        fields.update(extra)
        if "created_at" in model.model_fields:
            fields["created_at"] = utcnow()
        async with self._session() as session:
            row = row_cls(**fields)
            session.add(row)
            await session.commit()
            return model.model_validate(row)

    async def _get(self, row_cls, model: type[M], row_id: int) -> Optional[M]:
        async with self._session() as session:
            row = await session.get(row_cls, row_id)
            return model.model_validate(row) if row else None

    async def _update(self, row_cls, model: type[M], row_id: int, changes) -> Optional[M]:
        async with self._session() as session:
            row = await session.get(row_cls, row_id)
            if row is None:
                return None
            for key, value in _column_values(changes_of(changes)).items():
                setattr(row, key, value)
            await session.commit()
            return model.model_validate(row)

    async def _delete(self, row_cls, row_id: int) -> bool:
        async with self._session() as session:
            result = await session.execute(delete(row_cls).where(row_cls.id == row_id))
            await session.commit()
            return result.rowcount > 0

    async def _select(self, model: type[M], stmt) -> list[M]:
        async with self._session() as session:
            result = await session.execute(stmt)
            return [model.model_validate(r) for r in result.scalars().all()]

    async def _first(self, model: type[M], stmt) -> Optional[M]:
        async with self._session() as session:
            result = await session.execute(stmt.limit(1))
            row = result.scalars().first()
            return model.model_validate(row) if row else None

    # ── Users ────────────────────────────────────────────────────────────

    async def get_user(self, user_id: int) -> Optional[User]:
        return await self._get(UserRow, User, user_id)

    async def get_user_by_username(self, username: str) -> Optional[User]:
        stmt = select(UserRow).where(func.lower(UserRow.username) == username.lower()).order_by(UserRow.id)
        return await self._first(User, stmt)

    async def get_user_by_email(self, email: str) -> Optional[User]:
        stmt = select(UserRow).where(func.lower(UserRow.email) == email.lower()).order_by(UserRow.id)
        return await self._first(User, stmt)

    async def create_user(self, data: UserCreate) -> User:
        return await self._insert(UserRow, User, data)

    async def update_user(self, user_id: int, changes: UserUpdate | dict) -> Optional[User]:
        return await self._update(UserRow, User, user_id, changes)

    # ── Recipes ──────────────────────────────────────────────────────────

    async def get_recipe(self, recipe_id: int) -> Optional[Recipe]:
        return await self._get(RecipeRow, Recipe, recipe_id)

    async def get_recipes(self) -> list[Recipe]:
        return await self._select(Recipe, select(RecipeRow).order_by(RecipeRow.id))

    async def get_recipes_by_user(self, user_id: int) -> list[Recipe]:
        stmt = select(RecipeRow).where(RecipeRow.user_id == user_id).order_by(RecipeRow.id)
        return await self._select(Recipe, stmt)

    async def get_recent_recipes(self, limit: int) -> list[Recipe]:
        if limit <= 0:
            return []
        stmt = (
            select(RecipeRow)
            .order_by(RecipeRow.created_at.desc(), RecipeRow.id.desc())
            .limit(limit)
        )
        return await self._select(Recipe, stmt)

    async def get_recipes_by_tag(self, tag: str, limit: Optional[int] = None) -> list[Recipe]:
        # JSON containment differs between SQLite and Postgres; match exact tags in Python
        stmt = select(RecipeRow).where(RecipeRow.tags.is_not(None)).order_by(RecipeRow.id)
        matches = [r for r in await self._select(Recipe, stmt) if r.tags and tag in r.tags]
        if limit is None:
            return matches
        return matches[:max(limit, 0)]

    async def search_recipes(self, query: str) -> list[Recipe]:
        needle = query.strip()
        if not needle:
            return []
        q = f"%{_escape_like(needle)}%"
        stmt = (
            select(RecipeRow)
            .where(or_(
                RecipeRow.title.ilike(q, escape="\\"),
                RecipeRow.description.ilike(q, escape="\\"),
            ))
            .order_by(RecipeRow.id)
        )
        return await self._select(Recipe, stmt)

    async def create_recipe(self, data: RecipeCreate) -> Recipe:
        return await self._insert(RecipeRow, Recipe, data)

    async def update_recipe(self, recipe_id: int, changes: RecipeUpdate | dict) -> Optional[Recipe]:
        return await self._update(RecipeRow, Recipe, recipe_id, changes)

    async def delete_recipe(self, recipe_id: int, cascade: bool = False) -> bool:
        async with self._session() as session:
            result = await session.execute(delete(RecipeRow).where(RecipeRow.id == recipe_id))
            deleted = result.rowcount > 0
            if deleted and cascade:
                removed = 0
                for row_cls in (IngredientRow, InstructionRow, ReviewRow, MealPlanRow, FavoriteRow):
                    child = await session.execute(delete(row_cls).where(row_cls.recipe_id == recipe_id))
                    removed += child.rowcount
                logger.debug("Cascade delete of recipe %s removed %d child rows", recipe_id, removed)
            await session.commit()
            return deleted

    # ── Ingredients & instructions ───────────────────────────────────────

    async def get_ingredients_by_recipe(self, recipe_id: int) -> list[Ingredient]:
        stmt = select(IngredientRow).where(IngredientRow.recipe_id == recipe_id).order_by(IngredientRow.id)
        return await self._select(Ingredient, stmt)

    async def create_ingredient(self, data: IngredientCreate) -> Ingredient:
        return await self._insert(IngredientRow, Ingredient, data)

    async def get_instructions_by_recipe(self, recipe_id: int) -> list[Instruction]:
        stmt = (
            select(InstructionRow)
            .where(InstructionRow.recipe_id == recipe_id)
            .order_by(InstructionRow.step_number, InstructionRow.id)
        )
        return await self._select(Instruction, stmt)

    async def create_instruction(self, data: InstructionCreate) -> Instruction:
        return await self._insert(InstructionRow, Instruction, data)

    # ── Reviews ──────────────────────────────────────────────────────────

    async def get_review(self, review_id: int) -> Optional[Review]:
        return await self._get(ReviewRow, Review, review_id)

    async def get_reviews_by_recipe(self, recipe_id: int) -> list[Review]:
        stmt = (
            select(ReviewRow)
            .where(ReviewRow.recipe_id == recipe_id)
            .order_by(ReviewRow.created_at.desc(), ReviewRow.id.desc())
        )
        return await self._select(Review, stmt)

    async def get_reviews_by_user(self, user_id: int) -> list[Review]:
        stmt = (
            select(ReviewRow)
            .where(ReviewRow.user_id == user_id)
            .order_by(ReviewRow.created_at.desc(), ReviewRow.id.desc())
        )
        return await self._select(Review, stmt)

    async def create_review(self, data: ReviewCreate) -> Review:
        return await self._insert(ReviewRow, Review, data)

    async def update_review(self, review_id: int, changes: ReviewUpdate | dict) -> Optional[Review]:
        return await self._update(ReviewRow, Review, review_id, changes)

    async def delete_review(self, review_id: int) -> bool:
        return await self._delete(ReviewRow, review_id)

    async def get_average_ratings(self) -> dict[int, float]:
        stmt = (
            select(ReviewRow.recipe_id, func.sum(ReviewRow.rating), func.count(ReviewRow.id))
            .join(RecipeRow, RecipeRow.id == ReviewRow.recipe_id)
            .group_by(ReviewRow.recipe_id)
        )
        async with self._session() as session:
            result = await session.execute(stmt)
            rows = result.all()
        # Same rounding as average_rating() regardless of the database's AVG type
        return {recipe_id: round(int(total) / count, 1) for recipe_id, total, count in rows if count}

    # ── Favorites ────────────────────────────────────────────────────────

    async def get_favorites(self, user_id: int) -> list[Recipe]:
        stmt = (
            select(RecipeRow)
            .join(FavoriteRow, FavoriteRow.recipe_id == RecipeRow.id)
            .where(FavoriteRow.user_id == user_id)
            .order_by(FavoriteRow.created_at, RecipeRow.id)
        )
        return await self._select(Recipe, stmt)

    async def add_favorite(self, user_id: int, recipe_id: int) -> Favorite:
        async with self._session() as session:
            row = await session.merge(FavoriteRow(user_id=user_id, recipe_id=recipe_id, created_at=utcnow()))
            await session.commit()
            return Favorite.model_validate(row)

    async def remove_favorite(self, user_id: int, recipe_id: int) -> bool:
        async with self._session() as session:
            result = await session.execute(
                delete(FavoriteRow).where(FavoriteRow.user_id == user_id, FavoriteRow.recipe_id == recipe_id)
            )
            await session.commit()
            return result.rowcount > 0

    async def is_favorite(self, user_id: int, recipe_id: int) -> bool:
        async with self._session() as session:
            return await session.get(FavoriteRow, (user_id, recipe_id)) is not None

    # ── Shopping list ────────────────────────────────────────────────────

    async def get_shopping_list(self, user_id: int) -> list[ShoppingListItem]:
        stmt = (
            select(ShoppingListItemRow)
            .where(ShoppingListItemRow.user_id == user_id)
            .order_by(ShoppingListItemRow.created_at, ShoppingListItemRow.id)
        )
        return await self._select(ShoppingListItem, stmt)

    async def get_shopping_list_item(self, item_id: int) -> Optional[ShoppingListItem]:
        return await self._get(ShoppingListItemRow, ShoppingListItem, item_id)

    async def add_to_shopping_list(self, data: ShoppingListItemCreate) -> ShoppingListItem:
        return await self._insert(ShoppingListItemRow, ShoppingListItem, data)

    async def update_shopping_list_item(
        self, item_id: int, changes: ShoppingListItemUpdate | dict,
    ) -> Optional[ShoppingListItem]:
        return await self._update(ShoppingListItemRow, ShoppingListItem, item_id, changes)

    async def delete_shopping_list_item(self, item_id: int) -> bool:
        return await self._delete(ShoppingListItemRow, item_id)

    async def clear_shopping_list(self, user_id: int) -> bool:
        async with self._session() as session:
            await session.execute(delete(ShoppingListItemRow).where(ShoppingListItemRow.user_id == user_id))
            await session.commit()
        return True

    # ── Meal plans ───────────────────────────────────────────────────────

    async def get_meal_plans(self, user_id: int) -> list[MealPlan]:
        stmt = (
            select(MealPlanRow)
            .where(MealPlanRow.user_id == user_id)
            .order_by(MealPlanRow.planned_date, MealPlanRow.id)
        )
        return await self._select(MealPlan, stmt)

    async def get_meal_plan(self, plan_id: int) -> Optional[MealPlan]:
        return await self._get(MealPlanRow, MealPlan, plan_id)

    async def create_meal_plan(self, data: MealPlanCreate) -> MealPlan:
        return await self._insert(MealPlanRow, MealPlan, data)

    async def update_meal_plan(self, plan_id: int, changes: MealPlanUpdate | dict) -> Optional[MealPlan]:
        return await self._update(MealPlanRow, MealPlan, plan_id, changes)

    async def delete_meal_plan(self, plan_id: int) -> bool:
        return await self._delete(MealPlanRow, plan_id)

    # ── Activity log ─────────────────────────────────────────────────────

    async def get_activity_logs(self, user_id: int) -> list[ActivityLog]:
        stmt = (
            select(ActivityLogRow)
            .where(ActivityLogRow.user_id == user_id)
            .order_by(ActivityLogRow.created_at.desc(), ActivityLogRow.id.desc())
        )
        return await self._select(ActivityLog, stmt)

    async def create_activity_log(self, data: ActivityLogCreate) -> ActivityLog:
        return await self._insert(ActivityLogRow, ActivityLog, data)
