"""Request-scoped access to the objects built in the app lifespan."""
from __future__ import annotations

from fastapi import Request

from src.db.storage import Storage
from src.services.mealdb import MealDbClient
from src.services.nutrition import NutritionClient


def get_storage(request: Request) -> Storage:
    return request.app.state.storage


def get_recipe_source(request: Request) -> MealDbClient:
    return request.app.state.mealdb


def get_nutrition_client(request: Request) -> NutritionClient:
    return request.app.state.nutrition
