"""User and activity-log models."""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from src.models.recipe import utcnow


class UserCreate(BaseModel):
    username: str = Field(..., min_length=3, max_length=50)
    email: EmailStr
    name: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=6, max_length=256)  # hashed before it reaches storage
    bio: Optional[str] = Field(None, max_length=1000)
    avatar_url: Optional[str] = Field(None, max_length=2000)


class UserUpdate(BaseModel):
    email: Optional[EmailStr] = None
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    password: Optional[str] = Field(None, min_length=6, max_length=256)
    bio: Optional[str] = Field(None, max_length=1000)
    avatar_url: Optional[str] = Field(None, max_length=2000)


class User(BaseModel):
    id: int
    username: str
    email: str
    name: str
    password: str
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)

    model_config = ConfigDict(from_attributes=True)

    def public(self) -> dict:
        """Profile fields safe to return to clients."""
        return self.model_dump(mode="json", exclude={"password"})


class ActivityLogCreate(BaseModel):
    user_id: int
    action: str = Field(..., min_length=1, max_length=100)  # "create_recipe", "review", "favorite", ...
    entity_id: Optional[int] = None
    entity_type: Optional[str] = Field(None, max_length=50)  # "recipe", "review", "shopping_list", ...
    details: Optional[str] = None


class ActivityLog(ActivityLogCreate):
    id: int
    created_at: datetime = Field(default_factory=utcnow)

    model_config = ConfigDict(from_attributes=True)
