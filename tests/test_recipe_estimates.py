"""Tests for the nutrition/servings/difficulty heuristics applied to TheMealDB meals."""
from __future__ import annotations

from src.models import Difficulty
from src.services.recipe_estimates import (
    count_ingredients,
    difficulty_from_instructions,
    estimate_calories,
    estimate_macros,
    estimate_servings,
    split_steps,
)
from tests.samples import APPLE_FRANGIPAN, TERIYAKI_CHICKEN


def _meal(category: str, n_ingredients: int) -> dict:
    meal = {"strCategory": category}
    for i in range(1, n_ingredients + 1):
        meal[f"strIngredient{i}"] = f"ingredient {i}"
    return meal


class TestCountIngredients:
    def test_blank_and_missing_slots_skipped(self):
        assert count_ingredients(TERIYAKI_CHICKEN) == 9

    def test_whitespace_only_slot_skipped(self):
        assert count_ingredients({"strIngredient1": "salt", "strIngredient2": "   "}) == 1

    def test_empty_meal(self):
        assert count_ingredients({}) == 0


class TestEstimateCalories:
    def test_category_baseline(self):
        assert estimate_calories(_meal("Dessert", 3)) == 400
        assert estimate_calories(_meal("Beef", 3)) == 500
        assert estimate_calories(_meal("Seafood", 3)) == 300
        assert estimate_calories(_meal("Vegetarian", 3)) == 250

    def test_unknown_category_uses_default(self):
        assert estimate_calories(_meal("Goat", 3)) == 400
        assert estimate_calories({}) == 400

    def test_ingredient_count_multiplier(self):
        assert estimate_calories(_meal("Seafood", 6)) == 330
        assert estimate_calories(_meal("Seafood", 11)) == 360

    def test_sample_meals(self):
        assert estimate_calories(TERIYAKI_CHICKEN) == 385
        assert estimate_calories(APPLE_FRANGIPAN) == 400


class TestEstimateMacros:
    def test_meat_split(self):
        macros = estimate_macros(_meal("Beef", 3))
        assert macros.protein == 50
        assert macros.fats == 19
        assert macros.carbs == 31

    def test_default_split(self):
        macros = estimate_macros(_meal("Goat", 3))
        assert macros.protein == 25
        assert macros.fats == 13
        assert macros.carbs == 45


class TestEstimateServings:
    def test_dessert_serves_eight(self):
        assert estimate_servings(APPLE_FRANGIPAN) == 8

    def test_breakfast_serves_two(self):
        assert estimate_servings(_meal("Breakfast", 15)) == 2

    def test_scales_with_ingredients(self):
        assert estimate_servings(_meal("Beef", 3)) == 2
        assert estimate_servings(TERIYAKI_CHICKEN) == 4
        assert estimate_servings(_meal("Beef", 13)) == 6


class TestDifficulty:
    def test_missing_text_is_medium(self):
        assert difficulty_from_instructions(None) == Difficulty.MEDIUM
        assert difficulty_from_instructions("") == Difficulty.MEDIUM

    def test_short_text_is_easy(self):
        assert difficulty_from_instructions(APPLE_FRANGIPAN["strInstructions"]) == Difficulty.EASY

    def test_many_steps_is_medium(self):
        assert difficulty_from_instructions(TERIYAKI_CHICKEN["strInstructions"]) == Difficulty.MEDIUM

    def test_long_text_is_hard(self):
        assert difficulty_from_instructions("word " * 301) == Difficulty.HARD
        assert difficulty_from_instructions("Stir. " * 11) == Difficulty.HARD


class TestSplitSteps:
    def test_sentences_become_steps(self):
        assert split_steps(APPLE_FRANGIPAN["strInstructions"]) == [
            "Preheat the oven.",
            "Crush the biscuits.",
            "Bake for 20-25 minutes.",
        ]

    def test_no_double_period_on_last_step(self):
        steps = split_steps(TERIYAKI_CHICKEN["strInstructions"])
        assert len(steps) == 7
        assert steps[0] == "Preheat oven to 350 F."
        assert steps[-1] == "Once sauce is boiling, add mixture to the saucepan and stir to combine."

    def test_empty(self):
        assert split_steps(None) == []
        assert split_steps("   ") == []
