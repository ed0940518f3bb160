"""Reviews and favorites."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from src.models.recipe import utcnow


class ReviewCreate(BaseModel):
    user_id: int
    recipe_id: int
    rating: int = Field(..., ge=1, le=5)
    comment: str = Field(..., max_length=2000)


class ReviewUpdate(BaseModel):
    rating: int | None = Field(None, ge=1, le=5)
    comment: str | None = Field(None, max_length=2000)


class Review(ReviewCreate):
    id: int
    created_at: datetime = Field(default_factory=utcnow)

    model_config = ConfigDict(from_attributes=True)


class Favorite(BaseModel):
    """Composite-key bookmark: at most one per (user_id, recipe_id)."""

    user_id: int
    recipe_id: int
    created_at: datetime = Field(default_factory=utcnow)

    model_config = ConfigDict(from_attributes=True)

    @property
    def key(self) -> tuple[int, int]:
        return (self.user_id, self.recipe_id)
