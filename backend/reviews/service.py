from __future__ import annotations

import logging

from ..errors import ConflictError, NotFoundError, ValidationError
from ..storage import store
from .models import (
    Review,
    ReviewCreate,
    ReviewPage,
    ReviewUpdate,
    ReviewWithRestaurant,
    ReviewWithUser,
)

logger = logging.getLogger(__name__)


def _require(review_id: str) -> Review:
    review = store.get(store.REVIEWS, review_id)
    if review is None:
        raise NotFoundError("Review not found")
    return review


def _check_rating(rating: int) -> None:
    if rating < 1 or rating > 5:
        raise ValidationError("Rating must be between 1 and 5")


def recalculate_restaurant_rating(restaurant_id: str) -> None:
    """Recompute ``average_rating`` and ``total_reviews`` from the stored reviews.

    This is the only code path that writes either field.

    Runs inside a store transaction so concurrent review writes cannot
    interleave between the read and the write.
    """

    def _recalc(restaurant):
        reviews = store.list_records(store.REVIEWS, lambda r: r.restaurant_id == restaurant_id)
        if not reviews:
            changes = {"average_rating": 0.0, "total_reviews": 0}
        else:
            avg = sum(r.rating for r in reviews) / len(reviews)
            changes = {"average_rating": round(avg, 2), "total_reviews": len(reviews)}
        changes["updated_at"] = store.utcnow()
        return restaurant.model_copy(update=changes)

    if store.get_restaurant(restaurant_id) is not None:
        store.transaction(store.RESTAURANTS, restaurant_id, _recalc)


def list_restaurant_reviews(
    restaurant_id: str,
    rating: int | None = None,
    sort_by: str | None = None,
    limit: int = 20,
    offset: int = 0,
) -> ReviewPage:
    reviews = store.list_records(store.REVIEWS, lambda r: r.restaurant_id == restaurant_id)
    if rating:
        reviews = [r for r in reviews if r.rating == rating]

    # Newest first is the tiebreak for every ordering.
    reviews.sort(key=lambda r: r.created_at, reverse=True)
    if sort_by == "rating_high":
        reviews.sort(key=lambda r: r.rating, reverse=True)
    elif sort_by == "rating_low":
        reviews.sort(key=lambda r: r.rating)
    elif sort_by == "helpful":
        reviews.sort(key=lambda r: r.helpful_count, reverse=True)

    page = reviews[offset:offset + limit]
    items = []
    for review in page:
        author = store.get_user(review.user_id)
        items.append(ReviewWithUser(
            **review.model_dump(), user=author.public() if author else None,
        ))
    return ReviewPage(
        items=items,
        total=len(reviews),
        limit=limit,
        offset=offset,
        has_more=offset + len(page) < len(reviews),
    )


def list_user_reviews(user_id: str) -> list[ReviewWithRestaurant]:
    reviews = store.list_records(store.REVIEWS, lambda r: r.user_id == user_id)
    reviews.sort(key=lambda r: r.created_at, reverse=True)
    return [
        ReviewWithRestaurant(**r.model_dump(), restaurant=store.get_restaurant(r.restaurant_id))
        for r in reviews
    ]


def create_review(body: ReviewCreate) -> ReviewWithUser:
    if not body.user_id or not body.restaurant_id or not body.rating or not body.content:
        raise ValidationError("user_id, restaurant_id, rating, and content are required")
    _check_rating(body.rating)

    author = store.get_user(body.user_id)
    if author is None:
        raise NotFoundError("User not found")
    if store.get_restaurant(body.restaurant_id) is None:
        raise NotFoundError("Restaurant not found")

    review = store.insert_unique(
        store.REVIEWS,
        Review(**body.model_dump()),
        lambda r: r.user_id == body.user_id and r.restaurant_id == body.restaurant_id,
    )
    if review is None:
        raise ConflictError("You have already reviewed this restaurant")

    recalculate_restaurant_rating(body.restaurant_id)

    logger.info("User %s reviewed restaurant %s (%d stars)",
                body.user_id, body.restaurant_id, review.rating)
    return ReviewWithUser(**review.model_dump(), user=author.public())


def update_review(review_id: str, changes: ReviewUpdate) -> Review:
    existing = _require(review_id)
    if changes.rating is not None:
        _check_rating(changes.rating)
    updated = store.update(store.REVIEWS, review_id, changes.model_dump(exclude_none=True))
    recalculate_restaurant_rating(existing.restaurant_id)
    return updated


def delete_review(review_id: str) -> None:
    existing = _require(review_id)
    store.delete(store.REVIEWS, review_id)
    recalculate_restaurant_rating(existing.restaurant_id)


def mark_helpful(review_id: str) -> Review:
    _require(review_id)
    return store.atomic_increment(store.REVIEWS, review_id, "helpful_count", 1)


def get_review(review_id: str) -> Review:
    return _require(review_id)
