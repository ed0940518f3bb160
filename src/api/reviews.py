"""Recipe reviews and ratings API."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel, Field

from src.api.deps import get_storage
from src.auth import require_user
from src.db.storage import Storage
from src.models import Review, ReviewCreate, ReviewUpdate, User
from src.services.activity import record_activity

router = APIRouter(prefix="/api", tags=["reviews"])


# ── Schemas ──────────────────────────────────────────────────────────────────

class ReviewCreateRequest(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: str = Field(..., max_length=2000)


# ── Helpers ──────────────────────────────────────────────────────────────────

async def _refresh_cached_rating(storage: Storage, recipe_id: int) -> None:
    """Keep Recipe.rating in step with the review average (None once all reviews are gone)."""
    await storage.update_recipe(recipe_id, {"rating": await storage.get_average_rating(recipe_id)})


async def _owned_review(review_id: int, user: User, storage: Storage) -> Review:
    review = await storage.get_review(review_id)
    if not review:
        raise HTTPException(404, "Review not found")
    if review.user_id != user.id:
        raise HTTPException(403, "Not authorized to modify this review")
    return review


# ── Recipe Reviews ───────────────────────────────────────────────────────────

@router.get("/recipes/{recipe_id}/reviews")
async def list_reviews(recipe_id: int, storage: Storage = Depends(get_storage)):
    """Reviews for a recipe, newest first, each with the reviewer's name."""
    reviews = await storage.get_reviews_by_recipe(recipe_id)
    names: dict[int, str] = {}
    for review in reviews:
        if review.user_id not in names:
            author = await storage.get_user(review.user_id)
            names[review.user_id] = author.name if author else "Unknown"
    return [{**r.model_dump(mode="json"), "user_name": names[r.user_id]} for r in reviews]


@router.get("/recipes/{recipe_id}/rating")
async def recipe_rating(recipe_id: int, storage: Storage = Depends(get_storage)):
    reviews = await storage.get_reviews_by_recipe(recipe_id)
    return {"rating": await storage.get_average_rating(recipe_id), "count": len(reviews)}


@router.post("/recipes/{recipe_id}/reviews", status_code=201, response_model=Review)
async def create_review(
    recipe_id: int,
    req: ReviewCreateRequest,
    user: User = Depends(require_user),
    storage: Storage = Depends(get_storage),
):
    """Submit a review for a recipe. One review per user per recipe."""
    if not await storage.get_recipe(recipe_id):
        raise HTTPException(404, "Recipe not found")
    existing = await storage.get_reviews_by_recipe(recipe_id)
    if any(r.user_id == user.id for r in existing):
        raise HTTPException(409, "You already reviewed this recipe")

    review = await storage.create_review(ReviewCreate(
        user_id=user.id, recipe_id=recipe_id, rating=req.rating, comment=req.comment,
    ))
    await _refresh_cached_rating(storage, recipe_id)
    await record_activity(storage, user.id, "review", "recipe", recipe_id, f"rating={req.rating}")
    return review


@router.patch("/reviews/{review_id}", response_model=Review)
async def update_review(
    review_id: int,
    req: ReviewUpdate,
    user: User = Depends(require_user),
    storage: Storage = Depends(get_storage),
):
    review = await _owned_review(review_id, user, storage)
    changes = {k: v for k, v in req.model_dump(exclude_unset=True).items() if v is not None}
    updated = await storage.update_review(review_id, changes)
    if not updated:
        raise HTTPException(404, "Review not found")
    await _refresh_cached_rating(storage, review.recipe_id)
    return updated


@router.delete("/reviews/{review_id}", status_code=204)
async def delete_review(
    review_id: int,
    user: User = Depends(require_user),
    storage: Storage = Depends(get_storage),
):
    review = await _owned_review(review_id, user, storage)
    await storage.delete_review(review_id)
    await _refresh_cached_rating(storage, review.recipe_id)
    return Response(status_code=204)
