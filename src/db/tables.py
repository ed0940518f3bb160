"""SQLAlchemy ORM models for the Savora database.

Cross-entity references are plain indexed integers, not foreign keys: the
storage layer tolerates orphans (favorites or shopping items that outlive a
recipe) and leaves referential checks to the request handlers.
"""
from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    Boolean, Column, DateTime, Float, Index, Integer, JSON, String, Text, TypeDecorator
)
from sqlalchemy.orm import DeclarativeBase


def _now():
    return datetime.now(timezone.utc)


class UTCDateTime(TypeDecorator):
    """Timezone-aware UTC datetimes, also on backends (SQLite) that drop the offset."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None and value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value

    def process_result_value(self, value, dialect):
        if value is not None and value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value


class Base(DeclarativeBase):
    pass


class UserRow(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(50), nullable=False, index=True)
    email = Column(String(320), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    password = Column(String(256), nullable=False)  # pbkdf2 hash
    bio = Column(Text, nullable=True)
    avatar_url = Column(String(2000), nullable=True)
    created_at = Column(UTCDateTime(), default=_now, nullable=False)


class RecipeRow(Base):
    __tablename__ = "recipes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(500), nullable=False, index=True)
    description = Column(Text, nullable=False)
    image_url = Column(String(2000), nullable=False)
    prep_time = Column(Integer, nullable=False)
    cook_time = Column(Integer, nullable=False)
    difficulty = Column(String(20), nullable=False)

    # Nutrition per serving
    calories = Column(Integer, nullable=True)
    protein = Column(Integer, nullable=True)
    fats = Column(Integer, nullable=True)
    carbs = Column(Integer, nullable=True)
    servings = Column(Integer, nullable=True)

    rating = Column(Float, nullable=True)  # cached review average
    user_id = Column(Integer, nullable=False, index=True)  # 0 = imported from TheMealDB
    source = Column(String(200), nullable=True)
    cooking_tips = Column(Text, nullable=True)
    tags = Column(JSON, nullable=True)  # list[str]
    created_at = Column(UTCDateTime(), default=_now, nullable=False, index=True)


class IngredientRow(Base):
    __tablename__ = "ingredients"

    id = Column(Integer, primary_key=True, autoincrement=True)
    recipe_id = Column(Integer, nullable=False, index=True)
    name = Column(String(200), nullable=False)
    quantity = Column(String(100), nullable=False)
    unit = Column(String(50), nullable=True)


class InstructionRow(Base):
    __tablename__ = "instructions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    recipe_id = Column(Integer, nullable=False, index=True)
    step_number = Column(Integer, nullable=False)
    description = Column(Text, nullable=False)

    __table_args__ = (
        Index("ix_instructions_recipe_step", "recipe_id", "step_number"),
    )


class ReviewRow(Base):
    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=False, index=True)
    recipe_id = Column(Integer, nullable=False, index=True)
    rating = Column(Integer, nullable=False)  # 1-5
    comment = Column(Text, nullable=False)
    created_at = Column(UTCDateTime(), default=_now, nullable=False)


class FavoriteRow(Base):
    __tablename__ = "favorites"

    user_id = Column(Integer, primary_key=True)
    recipe_id = Column(Integer, primary_key=True, index=True)
    created_at = Column(UTCDateTime(), default=_now, nullable=False)


class ShoppingListItemRow(Base):
    __tablename__ = "shopping_list_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=False, index=True)
    item = Column(String(200), nullable=False)
    quantity = Column(String(100), nullable=True)
    unit = Column(String(50), nullable=True)
    checked = Column(Boolean, default=False, nullable=False)
    recipe_id = Column(Integer, nullable=True)  # NULL = uncategorized
    external_ingredient_id = Column(Integer, nullable=True)
    created_at = Column(UTCDateTime(), default=_now, nullable=False)


class MealPlanRow(Base):
    __tablename__ = "meal_plans"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=False, index=True)
    recipe_id = Column(Integer, nullable=False, index=True)
    planned_date = Column(UTCDateTime(), nullable=False)
    meal_type = Column(String(20), nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(UTCDateTime(), default=_now, nullable=False)

    __table_args__ = (
        Index("ix_meal_plans_user_date", "user_id", "planned_date"),
    )


class ActivityLogRow(Base):
    __tablename__ = "activity_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=False, index=True)
    action = Column(String(100), nullable=False)
    entity_id = Column(Integer, nullable=True)
    entity_type = Column(String(50), nullable=True)
    details = Column(Text, nullable=True)
    created_at = Column(UTCDateTime(), default=_now, nullable=False)
