"""Randomized topic and keyword selection for upstream news queries.

The free news tiers rate-limit by exact query string and only return a small
page of results per query, so the general feed and umbrella categories rotate
through curated lists instead of repeating one query.
"""
from __future__ import annotations

import random
from typing import Optional, Protocol, Sequence


class RandomSource(Protocol):
    def choice(self, seq: Sequence[str]) -> str:
        ...


MAIN_TOPICS: tuple[str, ...] = (
    "world news",
    "breaking news",
    "technology",
    "artificial intelligence",
    "science",
    "space exploration",
    "climate change",
    "environment",
    "health",
    "medicine",
    "economy",
    "stock market",
    "business",
    "startups",
    "cryptocurrency",
    "politics",
    "elections",
    "international relations",
    "sports",
    "football",
    "cricket",
    "entertainment",
    "movies",
    "music",
    "gaming",
    "travel",
    "education",
    "energy",
    "automotive",
    "cybersecurity",
    "food",
    "fashion",
    "real estate",
    "culture",
)

CATEGORY_KEYWORDS: dict[str, tuple[str, ...]] = {
    "sports": (
        "football",
        "soccer",
        "cricket",
        "basketball",
        "tennis",
        "formula 1",
        "olympics",
        "baseball",
        "golf",
        "rugby",
    ),
    "politics": (
        "elections",
        "parliament",
        "congress",
        "government policy",
        "prime minister",
        "white house",
        "supreme court",
    ),
    "geopolitics": (
        "international relations",
        "diplomacy",
        "united nations",
        "nato",
        "trade war",
        "sanctions",
        "middle east conflict",
        "border dispute",
    ),
    "technology": (
        "artificial intelligence",
        "smartphones",
        "cybersecurity",
        "semiconductors",
        "software",
        "big tech",
    ),
    "business": (
        "stock market",
        "startups",
        "mergers and acquisitions",
        "earnings",
        "economy",
    ),
    "entertainment": (
        "movies",
        "music",
        "television",
        "celebrities",
        "streaming",
    ),
    "health": (
        "medicine",
        "public health",
        "mental health",
        "nutrition",
        "medical research",
    ),
    "science": (
        "space exploration",
        "physics",
        "biology",
        "climate science",
        "astronomy",
    ),
}


def pick_main_topic(topics: Sequence[str] = MAIN_TOPICS, rng: Optional[RandomSource] = None) -> str:
    if not topics:
        raise ValueError("topics must not be empty")
    return (rng or random).choice(topics)


def resolve_category(
    category: str,
    keywords: dict[str, Sequence[str]] = CATEGORY_KEYWORDS,
    rng: Optional[RandomSource] = None,
) -> str:
    """Map an umbrella category to one of its keywords; other categories pass through verbatim."""
    options = keywords.get(category.strip().lower())
    if not options:
        return category
    return (rng or random).choice(options)
