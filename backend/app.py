from __future__ import annotations

import logging

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.sessions import SessionMiddleware

from .analytics.aggregator import compute_analytics
from .analytics.store import get_events
from .auth.dependencies import ensure_owner_or_admin, is_admin, require_admin, require_user
from .auth.users import authenticate, register_user
from .config import DEFAULT_APP_CONFIG
from .data_ingestion.seed import run_seed
from .discussions import service as discussions
from .discussions.models import (
    Discussion,
    DiscussionCreate,
    DiscussionPage,
    DiscussionReply,
    DiscussionUpdate,
    ReplyCreate,
)
from .errors import DomainError, ForbiddenError
from .favorites import service as favorites
from .favorites.models import Favorite, FavoriteCheck, FavoriteRequest, FavoriteWithRestaurant
from .matching import service as matching
from .matching.models import (
    Match,
    MatchCreateRequest,
    MatchDetail,
    MatchStatus,
    MatchStatusUpdate,
    MeetupUpdate,
    PotentialMatchResponse,
)
from .recommendations.models import RecommendationResponse, SimilarRestaurantsResponse
from .recommendations.retrieval import get_recommendations, get_similar_restaurants
from .restaurants import service as restaurants
from .restaurants.models import FilterOptions, Restaurant, RestaurantCreate, RestaurantPage
from .reviews import service as reviews
from .reviews.models import (
    Review,
    ReviewCreate,
    ReviewPage,
    ReviewUpdate,
    ReviewWithRestaurant,
    ReviewWithUser,
)
from .users import service as users
from .users.models import (
    ActiveUpdate,
    LoginRequest,
    PreferencesUpdate,
    ProfileUpdate,
    RegisterRequest,
    RoleUpdate,
    UserPage,
    UserProfile,
)

logging.basicConfig(level=DEFAULT_APP_CONFIG.log_level)

app = FastAPI(title="Restaurant Discovery & Matching API", version="1.0.0")
app.add_middleware(SessionMiddleware, secret_key=DEFAULT_APP_CONFIG.session_secret)
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(DEFAULT_APP_CONFIG.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


if DEFAULT_APP_CONFIG.seed_on_startup:
    run_seed()


# ── Public endpoints ─────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


# ── Auth endpoints ───────────────────────────────────────────────────────


@app.post("/api/auth/register", response_model=UserProfile, status_code=201)
def register(body: RegisterRequest, request: Request) -> UserProfile:
    profile = register_user(body)
    request.session["user"] = {
        "id": profile.id,
        "username": profile.username,
        "email": profile.email,
        "role": profile.role.value,
    }
    return profile


@app.post("/api/auth/login")
def login(body: LoginRequest, request: Request) -> dict:
    user = authenticate(body.email, body.password)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    request.session["user"] = user
    return {"status": "ok", "user": user}


@app.post("/api/auth/logout")
def logout(request: Request) -> dict:
    request.session.clear()
    return {"status": "logged_out"}


@app.get("/api/auth/me")
def auth_me(user: dict = Depends(require_user)) -> dict:
    return user


# ── Users ────────────────────────────────────────────────────────────────


@app.get("/api/users/admin/all", response_model=UserPage)
def admin_list_users(
    limit: int = Query(50, ge=1),
    offset: int = Query(0, ge=0),
    role: str | None = None,
    is_active: bool | None = None,
    user: dict = Depends(require_admin),
) -> UserPage:
    return users.list_all_users(limit=limit, offset=offset, role=role, is_active=is_active)


@app.get("/api/users", response_model=UserPage)
def list_users(
    limit: int = Query(50, ge=1),
    offset: int = Query(0, ge=0),
    open_to_matching: bool | None = None,
) -> UserPage:
    return users.list_active_users(limit=limit, offset=offset, open_to_matching=open_to_matching)


@app.get("/api/users/{user_id}", response_model=UserProfile)
def get_user(user_id: str) -> UserProfile:
    return users.get_profile(user_id)


@app.put("/api/users/{user_id}", response_model=UserProfile)
def update_user(
    user_id: str, body: ProfileUpdate, user: dict = Depends(require_user),
) -> UserProfile:
    ensure_owner_or_admin(user, user_id)
    return users.update_profile(user_id, body)


@app.put("/api/users/{user_id}/preferences", response_model=UserProfile)
def update_preferences(
    user_id: str, body: PreferencesUpdate, user: dict = Depends(require_user),
) -> UserProfile:
    ensure_owner_or_admin(user, user_id)
    return users.update_profile(user_id, body)


@app.delete("/api/users/{user_id}")
def delete_user(user_id: str, user: dict = Depends(require_admin)) -> dict:
    users.delete_user(user_id)
    return {"message": "User deleted successfully"}


@app.put("/api/users/{user_id}/role", response_model=UserProfile)
def set_user_role(
    user_id: str, body: RoleUpdate, user: dict = Depends(require_admin),
) -> UserProfile:
    return users.set_role(user_id, body.role)


@app.put("/api/users/{user_id}/status", response_model=UserProfile)
def set_user_status(
    user_id: str, body: ActiveUpdate, user: dict = Depends(require_admin),
) -> UserProfile:
    return users.set_active(user_id, body.is_active)


# ── Restaurants ──────────────────────────────────────────────────────────


@app.get("/api/restaurants", response_model=RestaurantPage)
def list_restaurants(
    price_range: list[str] | None = Query(None),
    cuisine_type: list[str] | None = Query(None),
    atmosphere: list[str] | None = Query(None),
    is_study_friendly: bool = False,
    has_wifi: bool = False,
    has_outdoor_seating: bool = False,
    has_parking: bool = False,
    is_vegetarian_friendly: bool = False,
    is_vegan_friendly: bool = False,
    is_gluten_free_friendly: bool = False,
    min_rating: float | None = Query(None, ge=0, le=5),
    search: str | None = None,
    sort_by: str | None = None,
    limit: int = Query(50, ge=1),
    offset: int = Query(0, ge=0),
) -> RestaurantPage:
    return restaurants.search_restaurants(
        price_ranges=price_range,
        cuisine_types=cuisine_type,
        atmospheres=atmosphere,
        features={
            "is_study_friendly": is_study_friendly,
            "has_wifi": has_wifi,
            "has_outdoor_seating": has_outdoor_seating,
            "has_parking": has_parking,
            "is_vegetarian_friendly": is_vegetarian_friendly,
            "is_vegan_friendly": is_vegan_friendly,
            "is_gluten_free_friendly": is_gluten_free_friendly,
        },
        min_rating=min_rating,
        search=search,
        sort_by=sort_by,
        limit=limit,
        offset=offset,
    )


@app.get("/api/restaurants/meta/filters", response_model=FilterOptions)
def restaurant_filters() -> FilterOptions:
    return restaurants.filter_options()


@app.get("/api/restaurants/{restaurant_id}", response_model=Restaurant)
def get_restaurant(restaurant_id: str) -> Restaurant:
    return restaurants.get_restaurant(restaurant_id)


@app.post("/api/restaurants", response_model=Restaurant, status_code=201)
def create_restaurant(body: RestaurantCreate, user: dict = Depends(require_admin)) -> Restaurant:
    return restaurants.create_restaurant(body)


# ── Reviews ──────────────────────────────────────────────────────────────


@app.get("/api/reviews/restaurant/{restaurant_id}", response_model=ReviewPage)
def restaurant_reviews(
    restaurant_id: str,
    rating: int | None = Query(None, ge=1, le=5),
    sort_by: str | None = None,
    limit: int = Query(20, ge=1),
    offset: int = Query(0, ge=0),
) -> ReviewPage:
    return reviews.list_restaurant_reviews(
        restaurant_id, rating=rating, sort_by=sort_by, limit=limit, offset=offset,
    )


@app.get("/api/reviews/user/{user_id}", response_model=list[ReviewWithRestaurant])
def user_reviews(user_id: str) -> list[ReviewWithRestaurant]:
    return reviews.list_user_reviews(user_id)


@app.post("/api/reviews", response_model=ReviewWithUser, status_code=201)
def create_review(body: ReviewCreate, user: dict = Depends(require_user)) -> ReviewWithUser:
    if body.user_id:
        ensure_owner_or_admin(user, body.user_id)
    return reviews.create_review(body)


@app.put("/api/reviews/{review_id}", response_model=Review)
def update_review(
    review_id: str, body: ReviewUpdate, user: dict = Depends(require_user),
) -> Review:
    ensure_owner_or_admin(user, reviews.get_review(review_id).user_id)
    return reviews.update_review(review_id, body)


@app.delete("/api/reviews/{review_id}")
def delete_review(review_id: str, user: dict = Depends(require_user)) -> dict:
    ensure_owner_or_admin(user, reviews.get_review(review_id).user_id)
    reviews.delete_review(review_id)
    return {"message": "Review deleted successfully"}


@app.post("/api/reviews/{review_id}/helpful", response_model=Review)
def mark_review_helpful(review_id: str, user: dict = Depends(require_user)) -> Review:
    return reviews.mark_helpful(review_id)


# ── Favorites ────────────────────────────────────────────────────────────


@app.get("/api/favorites/user/{user_id}", response_model=list[FavoriteWithRestaurant])
def user_favorites(
    user_id: str, user: dict = Depends(require_user),
) -> list[FavoriteWithRestaurant]:
    return favorites.list_favorites(user_id)


@app.post("/api/favorites", response_model=Favorite, status_code=201)
def add_favorite(body: FavoriteRequest, user: dict = Depends(require_user)) -> Favorite:
    if body.user_id:
        ensure_owner_or_admin(user, body.user_id)
    return favorites.add_favorite(body)


@app.delete("/api/favorites")
def remove_favorite(body: FavoriteRequest, user: dict = Depends(require_user)) -> dict:
    if body.user_id:
        ensure_owner_or_admin(user, body.user_id)
    favorites.remove_favorite(body)
    return {"message": "Removed from favorites"}


@app.get("/api/favorites/check/{user_id}/{restaurant_id}", response_model=FavoriteCheck)
def check_favorite(
    user_id: str, restaurant_id: str, user: dict = Depends(require_user),
) -> FavoriteCheck:
    return FavoriteCheck(is_favorited=favorites.is_favorited(user_id, restaurant_id))


# ── Discussions ──────────────────────────────────────────────────────────


@app.get("/api/discussions/restaurant/{restaurant_id}", response_model=DiscussionPage)
def restaurant_discussions(
    restaurant_id: str,
    category: str | None = None,
    sort_by: str | None = None,
    limit: int = Query(20, ge=1),
    offset: int = Query(0, ge=0),
) -> DiscussionPage:
    return discussions.list_discussions(
        restaurant_id, category=category, sort_by=sort_by, limit=limit, offset=offset,
    )


@app.get("/api/discussions/{discussion_id}", response_model=Discussion)
def get_discussion(discussion_id: str) -> Discussion:
    return discussions.view_discussion(discussion_id)


@app.post("/api/discussions", response_model=Discussion, status_code=201)
def create_discussion(body: DiscussionCreate, user: dict = Depends(require_user)) -> Discussion:
    if body.user_id:
        ensure_owner_or_admin(user, body.user_id)
    return discussions.create_discussion(body)


@app.put("/api/discussions/{discussion_id}", response_model=Discussion)
def update_discussion(
    discussion_id: str, body: DiscussionUpdate, user: dict = Depends(require_user),
) -> Discussion:
    ensure_owner_or_admin(user, discussions.get_discussion(discussion_id).user_id)
    return discussions.update_discussion(discussion_id, body)


@app.delete("/api/discussions/{discussion_id}")
def delete_discussion(discussion_id: str, user: dict = Depends(require_user)) -> dict:
    ensure_owner_or_admin(user, discussions.get_discussion(discussion_id).user_id)
    discussions.delete_discussion(discussion_id)
    return {"message": "Discussion deleted successfully"}


@app.post("/api/discussions/{discussion_id}/like", response_model=Discussion)
def like_discussion(discussion_id: str, user: dict = Depends(require_user)) -> Discussion:
    return discussions.like_discussion(discussion_id)


@app.post(
    "/api/discussions/{discussion_id}/replies",
    response_model=DiscussionReply,
    status_code=201,
)
def add_reply(
    discussion_id: str, body: ReplyCreate, user: dict = Depends(require_user),
) -> DiscussionReply:
    if body.user_id:
        ensure_owner_or_admin(user, body.user_id)
    return discussions.add_reply(discussion_id, body)


@app.get("/api/discussions/{discussion_id}/replies", response_model=list[DiscussionReply])
def list_replies(discussion_id: str) -> list[DiscussionReply]:
    return discussions.list_replies(discussion_id)


# ── Matches ──────────────────────────────────────────────────────────────


@app.get("/api/matches/user/{user_id}/potential", response_model=PotentialMatchResponse)
def potential_matches(
    user_id: str,
    min_score: int = Query(40, ge=0, le=100),
    limit: int = Query(20, ge=1),
    user: dict = Depends(require_user),
) -> PotentialMatchResponse:
    return matching.get_potential_matches(user_id, min_score=min_score, limit=limit)


@app.post("/api/matches", response_model=MatchDetail, status_code=201)
def create_match(body: MatchCreateRequest, user: dict = Depends(require_user)) -> MatchDetail:
    if body.user1_id:
        ensure_owner_or_admin(user, body.user1_id)
    return matching.create_match_request(
        body.user1_id,
        body.user2_id,
        suggested_restaurant_id=body.suggested_restaurant_id,
        meetup_notes=body.meetup_notes,
    )


@app.get("/api/matches/user/{user_id}", response_model=list[MatchDetail])
def user_matches(
    user_id: str,
    status: MatchStatus | None = None,
    connected_only: bool = False,
    user: dict = Depends(require_user),
) -> list[MatchDetail]:
    return matching.get_user_matches(user_id, status=status, connected_only=connected_only)


@app.put("/api/matches/{match_id}/status", response_model=Match)
def update_match_status(
    match_id: str, body: MatchStatusUpdate, user: dict = Depends(require_user),
) -> Match:
    if body.user_id:
        ensure_owner_or_admin(user, body.user_id)
    return matching.update_match_status(match_id, body.user_id, body.status)


@app.put("/api/matches/{match_id}/meetup", response_model=MatchDetail)
def update_meetup(
    match_id: str, body: MeetupUpdate, user: dict = Depends(require_user),
) -> MatchDetail:
    match = matching.get_match(match_id)
    if user["id"] not in (match.user1_id, match.user2_id) and not is_admin(user):
        raise ForbiddenError("User is not part of this match")
    return matching.update_meetup(
        match_id,
        suggested_restaurant_id=body.suggested_restaurant_id,
        meetup_date=body.meetup_date,
        meetup_notes=body.meetup_notes,
    )


# ── Recommendations ──────────────────────────────────────────────────────


@app.get("/api/recommendations/user/{user_id}", response_model=RecommendationResponse)
def recommendations(
    user_id: str,
    limit: int = Query(10, ge=1),
    min_score: int = Query(40, ge=0),
    exclude_favorites: bool = False,
    user: dict = Depends(require_user),
) -> RecommendationResponse:
    return get_recommendations(
        user_id, min_score=min_score, limit=limit, exclude_favorites=exclude_favorites,
    )


@app.get("/api/recommendations/similar/{restaurant_id}", response_model=SimilarRestaurantsResponse)
def similar_restaurants(
    restaurant_id: str, limit: int = Query(5, ge=1),
) -> SimilarRestaurantsResponse:
    return get_similar_restaurants(restaurant_id, limit=limit)


# ── Admin endpoints ──────────────────────────────────────────────────────


@app.get("/api/admin/analytics")
def analytics(user: dict = Depends(require_admin)) -> dict:
    return compute_analytics(get_events())
