"""Tests for padding local listings with external recipes."""
from __future__ import annotations

import pytest

from src.models import Recipe
from src.services.catalog import backfill
from src.services.results import Failure, Ok


def _recipe(recipe_id: int, user_id: int = 1) -> Recipe:
    return Recipe(
        id=recipe_id,
        title=f"Recipe {recipe_id}",
        description="",
        image_url="",
        prep_time=5,
        cook_time=5,
        difficulty="Easy",
        user_id=user_id,
    )


class _Fetch:
    """Records how often the external source was asked."""

    def __init__(self, result):
        self.result = result
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        return self.result


@pytest.mark.asyncio
async def test_enough_local_skips_external():
    fetch = _Fetch(Ok([_recipe(99, user_id=0)]))
    result = await backfill([_recipe(1), _recipe(2), _recipe(3)], fetch, 2)
    assert [r.id for r in result] == [1, 2]
    assert fetch.calls == 0


@pytest.mark.asyncio
async def test_pads_with_unseen_external_ids():
    external = [_recipe(i, user_id=0) for i in (2, 50, 51, 52)]
    fetch = _Fetch(Ok(external))
    result = await backfill([_recipe(1), _recipe(2)], fetch, 4)
    # Local first, duplicate id 2 skipped
    assert [r.id for r in result] == [1, 2, 50, 51]
    assert fetch.calls == 1


@pytest.mark.asyncio
async def test_failed_fetch_returns_local():
    local = [_recipe(1)]
    result = await backfill(local, _Fetch(Failure("timeout")), 5)
    assert [r.id for r in result] == [1]


@pytest.mark.asyncio
async def test_non_positive_count():
    fetch = _Fetch(Ok([_recipe(9, user_id=0)]))
    assert await backfill([_recipe(1)], fetch, 0) == []
    assert fetch.calls == 0
