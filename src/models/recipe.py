"""Recipe data models — recipes, ingredients, and instruction steps."""
from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

# Recipes pulled from TheMealDB have no local owner
EXTERNAL_USER_ID = 0


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Difficulty(str, Enum):
    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"


class RecipeFields(BaseModel):
    """Recipe content as submitted by a client; the owner comes from auth."""

    title: str = Field(..., min_length=1, max_length=500)
    description: str
    image_url: str
    prep_time: int = Field(..., ge=0)  # minutes
    cook_time: int = Field(..., ge=0)  # minutes
    difficulty: Difficulty
    calories: Optional[int] = Field(None, ge=0)
    protein: Optional[int] = Field(None, ge=0)  # grams
    fats: Optional[int] = Field(None, ge=0)  # grams
    carbs: Optional[int] = Field(None, ge=0)  # grams
    servings: Optional[int] = Field(None, ge=1)
    rating: Optional[float] = Field(None, ge=0, le=5)  # cached average of reviews
    source: Optional[str] = None  # e.g. "TheMealDB", a blog hostname, or None for user-submitted
    cooking_tips: Optional[str] = None
    tags: Optional[list[str]] = None

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "title": "Tomato Soup",
                    "description": "Silky roasted tomato soup",
                    "image_url": "https://example.com/soup.jpg",
                    "prep_time": 10,
                    "cook_time": 35,
                    "difficulty": "Easy",
                    "calories": 220,
                    "servings": 4,
                    "tags": ["Vegetarian", "Soup"],
                }
            ]
        }
    )


class RecipeCreate(RecipeFields):
    user_id: int = Field(..., ge=0)


class RecipeUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=500)
    description: Optional[str] = None
    image_url: Optional[str] = None
    prep_time: Optional[int] = Field(None, ge=0)
    cook_time: Optional[int] = Field(None, ge=0)
    difficulty: Optional[Difficulty] = None
    calories: Optional[int] = Field(None, ge=0)
    protein: Optional[int] = Field(None, ge=0)
    fats: Optional[int] = Field(None, ge=0)
    carbs: Optional[int] = Field(None, ge=0)
    servings: Optional[int] = Field(None, ge=1)
    rating: Optional[float] = Field(None, ge=0, le=5)
    source: Optional[str] = None
    cooking_tips: Optional[str] = None
    tags: Optional[list[str]] = None


class Recipe(RecipeCreate):
    id: int
    created_at: datetime = Field(default_factory=utcnow)

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)

    @property
    def is_external(self) -> bool:
        return self.user_id == EXTERNAL_USER_ID


class IngredientFields(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    quantity: str = Field(..., max_length=100)  # free text: "2", "1/2", "a pinch"
    unit: Optional[str] = Field(None, max_length=50)


class IngredientCreate(IngredientFields):
    recipe_id: int


class Ingredient(IngredientCreate):
    id: int

    model_config = ConfigDict(from_attributes=True)


class InstructionFields(BaseModel):
    step_number: int = Field(..., ge=1)
    description: str = Field(..., min_length=1)


class InstructionCreate(InstructionFields):
    recipe_id: int


class Instruction(InstructionCreate):
    id: int

    model_config = ConfigDict(from_attributes=True)
