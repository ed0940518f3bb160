"""Approximate nutrition, servings and difficulty for imported meals.

TheMealDB publishes none of these, so they are guessed from the meal's
category, ingredient count and instruction text. The numbers are rough
heuristics for display, not nutrition data.
"""
from __future__ import annotations

import re
from dataclasses import dataclass

from src.models import Difficulty

MAX_INGREDIENT_SLOTS = 20

_STEP_SPLIT = re.compile(r"\.\s+")

# (keywords, base kcal) — first match wins
_CALORIE_BASELINES: list[tuple[tuple[str, ...], int]] = [
    (("dessert", "cake"), 400),
    (("beef", "lamb", "pork"), 500),
    (("chicken", "turkey"), 350),
    (("seafood", "fish"), 300),
    (("vegetarian", "vegan", "vegetable"), 250),
    (("pasta", "rice"), 450),
    (("breakfast",), 350),
]
DEFAULT_CALORIES = 400

# (keywords, protein/fat/carb share of calories)
_MACRO_SPLITS: list[tuple[tuple[str, ...], tuple[float, float, float]]] = [
    (("beef", "lamb", "pork", "chicken"), (0.40, 0.35, 0.25)),
    (("seafood", "fish"), (0.35, 0.30, 0.35)),
    (("vegetarian", "vegan", "vegetable"), (0.15, 0.25, 0.60)),
    (("dessert", "cake"), (0.05, 0.30, 0.65)),
    (("pasta", "rice"), (0.15, 0.25, 0.60)),
]
DEFAULT_SPLIT = (0.25, 0.30, 0.45)

KCAL_PER_G_PROTEIN = 4
KCAL_PER_G_CARBS = 4
KCAL_PER_G_FAT = 9


@dataclass(frozen=True)
class MacroEstimate:
    protein: int
    fats: int
    carbs: int


def _matches(category: str, keywords: tuple[str, ...]) -> bool:
    return any(k in category for k in keywords)


def _round_half_up(value: float) -> int:
    # Python's round() is banker's rounding; estimates round .5 up
    return int(value + 0.5)


def count_ingredients(meal: dict) -> int:
    """Number of non-blank strIngredient1..20 slots."""
    count = 0
    for i in range(1, MAX_INGREDIENT_SLOTS + 1):
        name = meal.get(f"strIngredient{i}")
        if name and name.strip():
            count += 1
    return count


def estimate_calories(meal: dict) -> int:
    category = (meal.get("strCategory") or "").lower()
    base = DEFAULT_CALORIES
    for keywords, kcal in _CALORIE_BASELINES:
        if _matches(category, keywords):
            base = kcal
            break

    n = count_ingredients(meal)
    multiplier = 1.2 if n > 10 else 1.1 if n > 5 else 1.0
    return _round_half_up(base * multiplier)


def estimate_macros(meal: dict) -> MacroEstimate:
    calories = estimate_calories(meal)
    category = (meal.get("strCategory") or "").lower()
    protein_pct, fat_pct, carb_pct = DEFAULT_SPLIT
    for keywords, split in _MACRO_SPLITS:
        if _matches(category, keywords):
            protein_pct, fat_pct, carb_pct = split
            break

    return MacroEstimate(
        protein=_round_half_up(calories * protein_pct / KCAL_PER_G_PROTEIN),
        fats=_round_half_up(calories * fat_pct / KCAL_PER_G_FAT),
        carbs=_round_half_up(calories * carb_pct / KCAL_PER_G_CARBS),
    )


def estimate_servings(meal: dict) -> int:
    category = (meal.get("strCategory") or "").lower()
    if _matches(category, ("dessert", "cake")):
        return 8
    if "breakfast" in category:
        return 2
    n = count_ingredients(meal)
    if n > 12:
        return 6
    if n > 8:
        return 4
    return 2


def difficulty_from_instructions(text: str | None) -> Difficulty:
    """Longer, more step-heavy instructions read as harder recipes."""
    if not text:
        return Difficulty.MEDIUM

    words = len(text.split())
    steps = len(_STEP_SPLIT.split(text))
    if words > 300 or steps > 10:
        return Difficulty.HARD
    if words > 150 or steps > 5:
        return Difficulty.MEDIUM
    return Difficulty.EASY


def split_steps(text: str | None) -> list[str]:
    """Break free-text instructions into sentences, each ending with a period."""
    if not text:
        return []
    steps = (s.strip().rstrip(".").strip() for s in _STEP_SPLIT.split(text))
    return [f"{step}." for step in steps if step]
