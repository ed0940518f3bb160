"""Tagged results returned by external adapters.

Adapters never raise for upstream problems; callers branch on the result
type instead::

    result = await mealdb.recipe_details(52772)
    if isinstance(result, Ok):
        ...
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    reason: str

    @property
    def ok(self) -> bool:
        return False


Result = Union[Ok[T], Failure]
