from __future__ import annotations

import math
from enum import Enum
from typing import Annotated, Any

from pydantic import BeforeValidator


class PriceRange(str, Enum):
    budget = "$"
    moderate = "$$"
    pricey = "$$$"
    luxury = "$$$$"


PRICE_ORDER = [p.value for p in PriceRange]
_DEFAULT_TIER = 2


def price_tier(value: Any) -> int:
    """Return the 1-based ordinal of a price range; unknown values count as ``$$``."""
    raw = value.value if isinstance(value, PriceRange) else value
    try:
        return PRICE_ORDER.index(raw) + 1
    except ValueError:
        return _DEFAULT_TIER


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def normalize_tags(values: Any) -> list[str]:
    """Strip, drop blanks and de-duplicate while keeping first-seen order."""
    if values is None:
        return []
    if isinstance(values, str):
        values = values.split(",")
    seen: set[str] = set()
    tags: list[str] = []
    for value in values:
        tag = str(value).strip()
        if tag and tag not in seen:
            seen.add(tag)
            tags.append(tag)
    return tags


AttributeSet = Annotated[list[str], BeforeValidator(normalize_tags)]


def overlap(left: list[str], right: list[str]) -> list[str]:
    """Items of *left* that also appear in *right*, in *left*'s order."""
    other = set(right)
    return [item for item in left if item in other]
