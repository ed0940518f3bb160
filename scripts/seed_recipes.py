#!/usr/bin/env python3
"""Seed the configured storage backend with sample Savora users and recipes."""
import asyncio
import sys, os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config.settings import settings
from src.auth import hash_password
from src.db import build_storage
from src.models import (
    IngredientCreate, InstructionCreate, RecipeCreate, ReviewCreate, UserCreate,
)

USERS = [
    {"username": "maria", "email": "maria@savora.app", "name": "Maria Rossi", "bio": "Weeknight pasta evangelist"},
    {"username": "kenji", "email": "kenji@savora.app", "name": "Kenji Sato", "bio": "Soups, stocks and slow food"},
]

RECIPES = [
    {
        "author": "maria",
        "title": "Spaghetti Aglio e Olio",
        "description": "Garlic, olive oil and chili tossed with spaghetti. Dinner in fifteen minutes.",
        "image_url": "https://images.savora.app/aglio-olio.jpg",
        "prep_time": 5, "cook_time": 10, "difficulty": "Easy",
        "calories": 520, "protein": 14, "fats": 22, "carbs": 68, "servings": 2,
        "tags": ["Pasta", "Vegetarian", "Quick"],
        "cooking_tips": "Save a cup of pasta water to loosen the sauce.",
        "ingredients": [
            ("spaghetti", "200", "g"),
            ("olive oil", "4", "tbsp"),
            ("garlic", "4", "cloves"),
            ("chili flakes", "1/2", "tsp"),
            ("parsley", "a handful", None),
        ],
        "steps": [
            "Boil the spaghetti in well-salted water until al dente.",
            "Gently fry sliced garlic and chili in the oil until golden.",
            "Toss the pasta with the oil, a splash of pasta water and parsley.",
        ],
    },
    {
        "author": "kenji",
        "title": "Miso Soup",
        "description": "Dashi, white miso, tofu and wakame. The five-minute classic.",
        "image_url": "https://images.savora.app/miso-soup.jpg",
        "prep_time": 5, "cook_time": 5, "difficulty": "Easy",
        "calories": 90, "protein": 7, "fats": 3, "carbs": 8, "servings": 2,
        "tags": ["Soup", "Vegetarian", "Japanese"],
        "ingredients": [
            ("dashi", "500", "ml"),
            ("white miso", "3", "tbsp"),
            ("silken tofu", "150", "g"),
            ("dried wakame", "1", "tbsp"),
            ("spring onion", "1", None),
        ],
        "steps": [
            "Warm the dashi without letting it boil.",
            "Whisk the miso into a ladle of dashi, then stir it back in.",
            "Add cubed tofu and wakame and heat through.",
            "Serve topped with sliced spring onion.",
        ],
    },
    {
        "author": "kenji",
        "title": "Braised Short Ribs",
        "description": "Beef short ribs braised low and slow in red wine until they fall off the bone.",
        "image_url": "https://images.savora.app/short-ribs.jpg",
        "prep_time": 30, "cook_time": 180, "difficulty": "Hard",
        "calories": 780, "protein": 48, "fats": 52, "carbs": 18, "servings": 4,
        "tags": ["Beef", "Dinner Party"],
        "ingredients": [
            ("beef short ribs", "1.5", "kg"),
            ("red wine", "750", "ml"),
            ("carrots", "2", None),
            ("onion", "1", None),
            ("tomato paste", "2", "tbsp"),
        ],
        "steps": [
            "Season and brown the ribs on all sides, then set aside.",
            "Soften the vegetables and tomato paste in the same pot.",
            "Add the wine and ribs, cover and braise at 150°C for three hours.",
            "Reduce the braising liquid and spoon it over the ribs.",
        ],
    },
]

# (reviewer, recipe title, rating, comment)
REVIEWS = [
    ("kenji", "Spaghetti Aglio e Olio", 5, "Simple and perfect."),
    ("maria", "Miso Soup", 4, "Added mushrooms, lovely."),
    ("maria", "Braised Short Ribs", 5, "Worth every minute."),
]

SEED_PASSWORD = "savora-demo"


async def seed():
    storage = build_storage(settings.STORAGE_BACKEND, settings.DATABASE_URL)
    await storage.init()
    try:
        if await storage.get_user_by_username(USERS[0]["username"]):
            print("Sample data already present, nothing to do")
            return

        users = {}
        for u in USERS:
            users[u["username"]] = await storage.create_user(
                UserCreate(**u, password=hash_password(SEED_PASSWORD)),
            )

        recipes = {}
        for r in RECIPES:
            fields = {k: v for k, v in r.items() if k not in ("author", "ingredients", "steps")}
            recipe = await storage.create_recipe(RecipeCreate(**fields, user_id=users[r["author"]].id))
            for name, quantity, unit in r["ingredients"]:
                await storage.create_ingredient(IngredientCreate(
                    recipe_id=recipe.id, name=name, quantity=quantity, unit=unit,
                ))
            for n, step in enumerate(r["steps"], start=1):
                await storage.create_instruction(InstructionCreate(
                    recipe_id=recipe.id, step_number=n, description=step,
                ))
            recipes[recipe.title] = recipe

        for reviewer, title, rating, comment in REVIEWS:
            recipe = recipes[title]
            await storage.create_review(ReviewCreate(
                user_id=users[reviewer].id, recipe_id=recipe.id, rating=rating, comment=comment,
            ))
            await storage.update_recipe(recipe.id, {"rating": await storage.get_average_rating(recipe.id)})

        print(f"✅ Seeded {len(users)} users, {len(recipes)} recipes, {len(REVIEWS)} reviews "
              f"into the {storage.backend} backend")
    finally:
        await storage.close()


if __name__ == "__main__":
    asyncio.run(seed())
