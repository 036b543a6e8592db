"""
Load seed restaurants, users, reviews and discussions into the store.

Usage:
    python -m backend.data_ingestion.seed   # parse and validate the files only
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, List

import pandas as pd

from ..auth.users import hash_password
from ..discussions.models import Discussion
from ..restaurants.models import Restaurant
from ..reviews.models import Review
from ..reviews.service import recalculate_restaurant_rating
from ..storage import store
from ..users.models import UserRecord
from .config import DEFAULT_SEED_CONFIG, SeedConfig

logger = logging.getLogger(__name__)

SEED_TABLES: List[str] = ["restaurants", "users", "reviews", "discussions"]

RESTAURANT_LIST_COLUMNS: List[str] = ["cuisine_type", "atmosphere"]
RESTAURANT_FLAG_COLUMNS: List[str] = [
    "is_study_friendly",
    "has_wifi",
    "has_outdoor_seating",
    "has_parking",
    "is_vegetarian_friendly",
    "is_vegan_friendly",
    "is_gluten_free_friendly",
]
USER_LIST_COLUMNS: List[str] = [
    "interests",
    "food_preferences",
    "dietary_restrictions",
    "cuisine_preferences",
    "atmosphere_preferences",
]
USER_FLAG_COLUMNS: List[str] = ["study_spot_preference", "social_preference", "open_to_matching"]
REVIEW_LIST_COLUMNS: List[str] = ["dishes_ordered"]
DISCUSSION_LIST_COLUMNS: List[str] = ["tags"]


def _split_list(value: Any) -> list[str]:
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return []
    return [part.strip() for part in str(value).split(",") if part.strip()]


def _to_flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "y")


def _read(path: Path, list_columns: List[str], flag_columns: List[str]) -> pd.DataFrame:
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    for col in list_columns:
        if col in df.columns:
            df[col] = df[col].apply(_split_list)
    for col in flag_columns:
        if col in df.columns:
            df[col] = df[col].apply(_to_flag)
    return df


def _clean(row: dict[str, Any]) -> dict[str, Any]:
    """Drop blank cells so model defaults apply."""
    return {k: v for k, v in row.items() if not (isinstance(v, str) and v.strip() == "")}


def load_restaurants(path: Path) -> list[Restaurant]:
    df = _read(path, RESTAURANT_LIST_COLUMNS, RESTAURANT_FLAG_COLUMNS)
    return [Restaurant(**_clean(row)) for row in df.to_dict(orient="records")]


def load_users(path: Path) -> list[UserRecord]:
    df = _read(path, USER_LIST_COLUMNS, USER_FLAG_COLUMNS)
    users: list[UserRecord] = []
    for row in df.to_dict(orient="records"):
        data = _clean(row)
        password = data.pop("password", "")
        users.append(UserRecord(**data, password_hash=hash_password(password)))
    return users


def _reference_maps(
    users: list[UserRecord], restaurants: list[Restaurant],
) -> tuple[dict[str, str], dict[str, str]]:
    return {u.username: u.id for u in users}, {r.name: r.id for r in restaurants}


def _resolve(row: dict[str, Any], user_ids: dict[str, str], restaurant_ids: dict[str, str],
             kind: str) -> dict[str, Any] | None:
    """Swap ``username``/``restaurant`` cells for ids; ``None`` if either is unknown."""
    data = _clean(row)
    username = data.pop("username", "")
    restaurant = data.pop("restaurant", "")
    if username not in user_ids or restaurant not in restaurant_ids:
        logger.warning("Skipping seed %s by %r for %r: unknown user or restaurant",
                       kind, username, restaurant)
        return None
    data["user_id"] = user_ids[username]
    data["restaurant_id"] = restaurant_ids[restaurant]
    return data


def load_reviews(
    path: Path, user_ids: dict[str, str], restaurant_ids: dict[str, str],
) -> list[Review]:
    df = _read(path, REVIEW_LIST_COLUMNS, [])
    reviews: list[Review] = []
    seen: set[tuple[str, str]] = set()
    for row in df.to_dict(orient="records"):
        data = _resolve(row, user_ids, restaurant_ids, "review")
        if data is None:
            continue
        key = (data["user_id"], data["restaurant_id"])
        if key in seen:
            logger.warning("Skipping duplicate seed review for %s", key)
            continue
        seen.add(key)
        reviews.append(Review(**data))
    return reviews


def load_discussions(
    path: Path, user_ids: dict[str, str], restaurant_ids: dict[str, str],
) -> list[Discussion]:
    df = _read(path, DISCUSSION_LIST_COLUMNS, [])
    discussions: list[Discussion] = []
    for row in df.to_dict(orient="records"):
        data = _resolve(row, user_ids, restaurant_ids, "discussion")
        if data is not None:
            discussions.append(Discussion(**data))
    return discussions


def load_seed(config: SeedConfig = DEFAULT_SEED_CONFIG) -> dict[str, list]:
    """
    Parse every seed file without touching the store.

    Missing files are skipped with a warning. Reviews and discussions are
    only loaded for users and restaurants that were loaded too.
    """
    data: dict[str, list] = {name: [] for name in SEED_TABLES}

    if config.restaurants_path.exists():
        data["restaurants"] = load_restaurants(config.restaurants_path)
    else:
        logger.warning("Seed file %s not found, skipping restaurants", config.restaurants_path)

    if config.users_path.exists():
        data["users"] = load_users(config.users_path)
    else:
        logger.warning("Seed file %s not found, skipping users", config.users_path)

    user_ids, restaurant_ids = _reference_maps(data["users"], data["restaurants"])

    if config.reviews_path.exists():
        data["reviews"] = load_reviews(config.reviews_path, user_ids, restaurant_ids)
    else:
        logger.warning("Seed file %s not found, skipping reviews", config.reviews_path)

    if config.discussions_path.exists():
        data["discussions"] = load_discussions(config.discussions_path, user_ids, restaurant_ids)
    else:
        logger.warning("Seed file %s not found, skipping discussions", config.discussions_path)

    return data


def run_seed(config: SeedConfig = DEFAULT_SEED_CONFIG) -> dict[str, int]:
    """
    Insert the bundled seed data.

    Restaurant ``average_rating`` and ``total_reviews`` are derived from the
    seeded reviews, never read from the restaurants file.
    """
    data = load_seed(config)
    counts = {
        "restaurants": store.bulk_insert(store.RESTAURANTS, data["restaurants"]),
        "users": store.bulk_insert(store.USERS, data["users"]),
        "reviews": store.bulk_insert(store.REVIEWS, data["reviews"]),
        "discussions": store.bulk_insert(store.DISCUSSIONS, data["discussions"]),
    }
    for restaurant in data["restaurants"]:
        recalculate_restaurant_rating(restaurant.id)

    logger.info("Seeded %d restaurants, %d users, %d reviews and %d discussions",
                counts["restaurants"], counts["users"], counts["reviews"], counts["discussions"])
    return counts


def validate_seed_files(config: SeedConfig = DEFAULT_SEED_CONFIG) -> dict[str, int]:
    """Parse the seed files and count the rows that would be inserted."""
    return {name: len(rows) for name, rows in load_seed(config).items()}


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    counts = validate_seed_files()
    summary = ", ".join(f"{n} {name}" for name, n in counts.items())
    print(f"Seed files validated: {summary}. Nothing was written; "
          "the API loads them into its in-memory store at startup.")


if __name__ == "__main__":
    main()
