"""Shopping list and meal plan models."""
from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.models.recipe import utcnow


class ShoppingListItemCreate(BaseModel):
    user_id: int
    item: str = Field(..., min_length=1, max_length=200)
    quantity: Optional[str] = Field(None, max_length=100)
    unit: Optional[str] = Field(None, max_length=50)
    checked: bool = False
    recipe_id: Optional[int] = None  # None → "uncategorized"
    external_ingredient_id: Optional[int] = None  # Spoonacular ingredient id


class ShoppingListItemUpdate(BaseModel):
    item: Optional[str] = Field(None, min_length=1, max_length=200)
    quantity: Optional[str] = Field(None, max_length=100)
    unit: Optional[str] = Field(None, max_length=50)
    checked: Optional[bool] = None
    recipe_id: Optional[int] = None
    external_ingredient_id: Optional[int] = None


class ShoppingListItem(ShoppingListItemCreate):
    id: int
    created_at: datetime = Field(default_factory=utcnow)

    model_config = ConfigDict(from_attributes=True)


class MealType(str, Enum):
    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    SNACK = "snack"


MEAL_TYPE_ORDER: dict[str, int] = {
    MealType.BREAKFAST.value: 1,
    MealType.LUNCH.value: 2,
    MealType.DINNER.value: 3,
    MealType.SNACK.value: 4,
}
OTHER_MEAL_ORDER = 99


def meal_type_ordinal(meal_type: str | MealType) -> int:
    """Sort position of a meal slot within a day; unknown slots go last."""
    value = meal_type.value if isinstance(meal_type, MealType) else str(meal_type)
    return MEAL_TYPE_ORDER.get(value, OTHER_MEAL_ORDER)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # Naive timestamps (date-only input, SQLite round trips) are taken as UTC
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class MealPlanCreate(BaseModel):
    user_id: int
    recipe_id: int
    planned_date: datetime
    meal_type: MealType
    notes: Optional[str] = Field(None, max_length=500)

    @field_validator("planned_date")
    @classmethod
    def normalize_planned_date(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(value)


class MealPlanUpdate(BaseModel):
    recipe_id: Optional[int] = None
    planned_date: Optional[datetime] = None
    meal_type: Optional[MealType] = None
    notes: Optional[str] = Field(None, max_length=500)

    @field_validator("planned_date")
    @classmethod
    def normalize_planned_date(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(value)


class MealPlan(MealPlanCreate):
    id: int
    created_at: datetime = Field(default_factory=utcnow)

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)
