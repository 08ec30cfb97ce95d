"""News feed orchestration: query diversification, caching, normalization, pagination."""
from __future__ import annotations

import base64
import logging
import math
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel

from .news_cache import BREAKING_NAMESPACE, FEED_NAMESPACE, NewsCache, build_cache, cache_key
from .news_cache_store import NewsCacheStoreError
from .news_client import NewsClient, NewsConfigError
from .query_diversifier import RandomSource, pick_main_topic, resolve_category

logger = logging.getLogger(__name__)

NO_SUMMARY = "No summary available."
BREAKING_KEY = "top-headlines"


class Article(BaseModel):
    title: str
    summary: str = NO_SUMMARY
    imageUrl: Optional[str] = None
    sourceUrl: str
    publishedAt: Optional[str] = None
    id: str


class FeedPage(BaseModel):
    articles: list[Article]
    totalPages: int
    currentPage: int


@dataclass(frozen=True)
class NewsFeedConfig:
    page_size: int
    breaking_page_size: int
    feed_cache_ttl_seconds: float
    breaking_cache_ttl_seconds: float


def _load_config() -> NewsFeedConfig:
    persistent = os.getenv("NEWS_CACHE_BACKEND", "memory").strip().lower() == "supabase"
    page_size = int(os.getenv("NEWS_PAGE_SIZE", "10"))
    breaking_page_size = int(os.getenv("NEWS_BREAKING_PAGE_SIZE", "5"))
    feed_ttl = float(os.getenv("NEWS_FEED_CACHE_TTL_SEC", "").strip() or ("900" if persistent else "600"))
    breaking_ttl = float(os.getenv("NEWS_BREAKING_CACHE_TTL_SEC", "600"))
    return NewsFeedConfig(
        page_size=max(1, min(page_size, 50)),
        breaking_page_size=max(1, min(breaking_page_size, 20)),
        feed_cache_ttl_seconds=max(1.0, feed_ttl),
        breaking_cache_ttl_seconds=max(1.0, breaking_ttl),
    )


def encode_article_id(source_url: str) -> str:
    return base64.b64encode(source_url.encode("utf-8")).decode("ascii")


def decode_article_id(article_id: str) -> str:
    return base64.b64decode(article_id.encode("ascii"), validate=True).decode("utf-8")


def _normalize_published_at(value: Any) -> Optional[str]:
    if not value:
        return None
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(text)
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def normalize_articles(items: list[dict[str, Any]]) -> list[Article]:
    articles: list[Article] = []
    for item in items:
        title = str(item.get("title") or "").strip()
        url = str(item.get("url") or "").strip()
        if not title or not url:
            continue
        image = str(item.get("image") or "").strip()
        articles.append(
            Article(
                title=title,
                summary=str(item.get("description") or "").strip() or NO_SUMMARY,
                imageUrl=image or None,
                sourceUrl=url,
                publishedAt=_normalize_published_at(item.get("published_at")),
                id=encode_article_id(url),
            )
        )
    return articles


def total_pages(total_results: int, page_size: int) -> int:
    return max(1, math.ceil(total_results / page_size))


class NewsFeedService:
    def __init__(
        self,
        client: NewsClient,
        feed_cache: NewsCache,
        breaking_cache: NewsCache,
        page_size: int = 10,
        breaking_page_size: int = 5,
        rng: Optional[RandomSource] = None,
    ) -> None:
        self._client = client
        self._feed_cache = feed_cache
        self._breaking_cache = breaking_cache
        self.page_size = page_size
        self.breaking_page_size = breaking_page_size
        self._rng = rng

    @classmethod
    def from_env(cls) -> "NewsFeedService":
        config = _load_config()
        return cls(
            client=NewsClient.from_env(),
            feed_cache=build_cache(FEED_NAMESPACE, config.feed_cache_ttl_seconds),
            breaking_cache=build_cache(BREAKING_NAMESPACE, config.breaking_cache_ttl_seconds),
            page_size=config.page_size,
            breaking_page_size=config.breaking_page_size,
        )

    def get_feed(self, category: Optional[str] = None, page: int = 1, force_refresh: bool = False) -> dict[str, Any]:
        self._require_client()
        page = max(1, page)

        if category and category.strip():
            query = resolve_category(category, rng=self._rng)
        else:
            query = pick_main_topic(rng=self._rng)
        key = cache_key(FEED_NAMESPACE, query, page)

        if not force_refresh:
            cached = self._cache_get(self._feed_cache, key)
            if cached is not None:
                logger.info("news_feed_cache_hit key=%s", key)
                return cached

        upstream = self._client.search(query, page=page, page_size=self.page_size)
        feed = FeedPage(
            articles=normalize_articles(upstream.articles),
            totalPages=total_pages(upstream.total_results, self.page_size),
            currentPage=page,
        )
        payload = feed.model_dump()
        self._cache_set(self._feed_cache, key, payload)
        logger.info(
            "news_feed_fetched key=%s articles=%s total_pages=%s forced=%s",
            key,
            len(feed.articles),
            feed.totalPages,
            force_refresh,
        )
        return payload

    def get_breaking_news(self, force_refresh: bool = False) -> list[dict[str, Any]]:
        self._require_client()
        key = cache_key(BREAKING_NAMESPACE, BREAKING_KEY)

        if not force_refresh:
            cached = self._cache_get(self._breaking_cache, key)
            if cached is not None:
                logger.info("breaking_news_cache_hit key=%s", key)
                return cached

        upstream = self._client.top_headlines(page_size=self.breaking_page_size)
        articles = [article.model_dump() for article in normalize_articles(upstream.articles)]
        self._cache_set(self._breaking_cache, key, articles)
        logger.info("breaking_news_fetched articles=%s forced=%s", len(articles), force_refresh)
        return articles

    def _require_client(self) -> None:
        if not self._client.configured:
            raise NewsConfigError("NEWS_API_KEY is missing; news provider is not configured.")

    def _cache_get(self, cache: NewsCache, key: str) -> Optional[Any]:
        try:
            return cache.get(key)
        except NewsCacheStoreError:
            logger.exception("news_cache_read_failed namespace=%s key=%s", cache.namespace, key)
            return None

    def _cache_set(self, cache: NewsCache, key: str, payload: Any) -> None:
        try:
            cache.set(key, payload)
        except NewsCacheStoreError:
            logger.exception("news_cache_write_failed namespace=%s key=%s", cache.namespace, key)


__all__ = [
    "Article",
    "FeedPage",
    "NewsFeedService",
    "decode_article_id",
    "encode_article_id",
    "normalize_articles",
    "total_pages",
]
