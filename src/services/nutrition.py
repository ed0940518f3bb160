"""Spoonacular ingredient lookup — search and per-ingredient nutrition facts."""
from __future__ import annotations

import asyncio
import logging
from typing import Optional

import httpx
from pydantic import BaseModel

from src.services.results import Failure, Ok, Result

logger = logging.getLogger(__name__)

SPOONACULAR_API_URL = "https://api.spoonacular.com"
INGREDIENT_IMAGE_URL = "https://spoonacular.com/cdn/ingredients_100x100/{image}"
SEARCH_RESULT_LIMIT = 5

MAX_RETRIES = 3
RETRY_DELAY_SECONDS = 1.0

NO_API_KEY = "api key not configured"


class IngredientMatch(BaseModel):
    id: int
    name: str
    image: str
    unit: str = ""


class NutritionFacts(BaseModel):
    calories: float = 0.0
    protein: float = 0.0
    fat: float = 0.0
    carbs: float = 0.0


def _image_url(image: Optional[str]) -> str:
    return INGREDIENT_IMAGE_URL.format(image=image) if image else ""


def _nutrient(nutrients: list[dict], name: str) -> float:
    """Amount of a named nutrient (case-insensitive); 0 when absent."""
    wanted = name.lower()
    for n in nutrients:
        if str(n.get("name", "")).lower() == wanted:
            return float(n.get("amount") or 0)
    return 0.0


def parse_nutrition(payload: dict) -> NutritionFacts:
    nutrients = (payload.get("nutrition") or {}).get("nutrients") or []
    return NutritionFacts(
        calories=_nutrient(nutrients, "Calories"),
        protein=_nutrient(nutrients, "Protein"),
        fat=_nutrient(nutrients, "Fat"),
        carbs=_nutrient(nutrients, "Carbohydrates"),
    )


class NutritionClient:
    """Async Spoonacular client with fixed-delay retries on upstream errors."""

    def __init__(
        self,
        api_key: str,
        base_url: str = SPOONACULAR_API_URL,
        timeout: float = 8.0,
        max_retries: int = MAX_RETRIES,
        retry_delay: float = RETRY_DELAY_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            headers={"Accept": "application/json"},
            transport=transport,
        )

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _get_json(self, path: str, **params) -> dict:
        """GET with up to ``max_retries`` retries; re-raises the last error."""
        params["apiKey"] = self.api_key
        attempt = 0
        while True:
            try:
                resp = await self._client.get(path, params=params)
                resp.raise_for_status()
                return resp.json()
            except (httpx.HTTPError, ValueError) as e:
                if attempt >= self.max_retries:
                    raise
                attempt += 1
                logger.info("Retrying Spoonacular %s (%d/%d): %s", path, attempt, self.max_retries, e)
                await asyncio.sleep(self.retry_delay)

    async def search_ingredients(self, query: str) -> Result[list[IngredientMatch]]:
        if not self.configured:
            logger.warning("Spoonacular search skipped: %s", NO_API_KEY)
            return Failure(NO_API_KEY)
        try:
            data = await self._get_json(
                "/food/ingredients/search",
                query=query,
                number=SEARCH_RESULT_LIMIT,
                metaInformation="true",
            )
            matches = [
                IngredientMatch(id=r["id"], name=r["name"], image=_image_url(r.get("image")))
                for r in data.get("results") or []
            ]
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
            logger.warning("Spoonacular search %r failed: %s", query, e)
            return Failure(f"search failed: {e}")
        return Ok(matches)

    async def ingredient_nutrition(
        self, ingredient_id: int, amount: float, unit: str,
    ) -> Result[NutritionFacts]:
        if not self.configured:
            return Failure(NO_API_KEY)
        try:
            data = await self._get_json(
                f"/food/ingredients/{ingredient_id}/information",
                amount=amount,
                unit=unit,
            )
            facts = parse_nutrition(data)
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
            logger.warning("Spoonacular nutrition for %s failed: %s", ingredient_id, e)
            return Failure(f"nutrition lookup failed: {e}")
        return Ok(facts)

    async def ingredient_by_id(self, ingredient_id: int) -> Result[IngredientMatch]:
        if not self.configured:
            return Failure(NO_API_KEY)
        try:
            data = await self._get_json(f"/food/ingredients/{ingredient_id}/information", amount=1)
            units = data.get("possibleUnits") or []
            match = IngredientMatch(
                id=data["id"],
                name=data["name"],
                image=_image_url(data.get("image")),
                unit=units[0] if units else "",
            )
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
            logger.warning("Spoonacular ingredient %s failed: %s", ingredient_id, e)
            return Failure(f"ingredient lookup failed: {e}")
        return Ok(match)
