"""Listing backfill — pad sparse local results with TheMealDB meals."""
from __future__ import annotations

import logging
from typing import Awaitable, Callable

from src.models import Recipe
from src.services.results import Ok, Result

logger = logging.getLogger(__name__)


async def backfill(
    local: list[Recipe],
    fetch_external: Callable[[], Awaitable[Result[list[Recipe]]]],
    count: int,
) -> list[Recipe]:
    """Local recipes first, then external ones with unseen ids, up to ``count``.

    The external fetch only runs when local results fall short. A failed
    fetch leaves the local list as-is.
    """
    if count <= 0:
        return []
    if len(local) >= count:
        return local[:count]

    result = await fetch_external()
    if not isinstance(result, Ok):
        logger.info("Backfill skipped: %s", result.reason)
        return list(local)

    merged = list(local)
    seen = {r.id for r in local}
    for recipe in result.value:
        if len(merged) >= count:
            break
        if recipe.id in seen:
            continue
        seen.add(recipe.id)
        merged.append(recipe)
    return merged
