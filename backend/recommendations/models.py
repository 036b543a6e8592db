from __future__ import annotations

from pydantic import BaseModel

from ..restaurants.models import Restaurant


class RecommendationItem(BaseModel):
    restaurant: Restaurant
    recommendation_score: int
    match_reasons: list[str]


class RecommendationResponse(BaseModel):
    recommendations: list[RecommendationItem]
    total_candidates: int


class SimilarRestaurantsResponse(BaseModel):
    restaurants: list[Restaurant]
    total_candidates: int
