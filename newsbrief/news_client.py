"""HTTP client for the GNews and NewsAPI search endpoints."""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from typing import Any
from http.client import HTTPException
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

logger = logging.getLogger(__name__)

PROVIDER_BASE_URLS = {
    "gnews": "https://gnews.io/api/v4",
    "newsapi": "https://newsapi.org/v2",
}

DEFAULT_HTTP_HEADERS = {
    "User-Agent": "NewsBriefBot/1.0",
    "Accept": "application/json",
    "Accept-Language": "en-US,en;q=0.9",
}


class NewsConfigError(RuntimeError):
    """Raised when the news provider key is missing."""


class NewsUpstreamError(RuntimeError):
    """Raised when the news provider fails or returns malformed data."""


class NewsRateLimitError(RuntimeError):
    """Raised when the news provider is rate-limited."""


@dataclass(frozen=True)
class UpstreamPage:
    articles: list[dict[str, Any]]
    total_results: int


class NewsClient:
    """Single-attempt client; raw provider articles are mapped to one shape."""

    def __init__(
        self,
        api_key: str,
        provider: str = "gnews",
        timeout_seconds: float = 10.0,
        base_url: str | None = None,
    ) -> None:
        if provider not in PROVIDER_BASE_URLS:
            raise NewsConfigError(f"Unsupported news provider: {provider}")
        self.api_key = api_key
        self.provider = provider
        self.timeout_seconds = timeout_seconds
        self.base_url = (base_url or PROVIDER_BASE_URLS[provider]).rstrip("/")

    @classmethod
    def from_env(cls) -> "NewsClient":
        provider = os.getenv("NEWS_PROVIDER", "gnews").strip().lower() or "gnews"
        timeout = float(os.getenv("NEWS_HTTP_TIMEOUT_SEC", "10"))
        return cls(
            api_key=os.getenv("NEWS_API_KEY", "").strip(),
            provider=provider,
            timeout_seconds=max(1.0, timeout),
        )

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def search(self, query: str, page: int, page_size: int) -> UpstreamPage:
        if self.provider == "newsapi":
            payload = self._get(
                "/everything",
                q=query,
                page=str(page),
                pageSize=str(page_size),
                language="en",
                sortBy="publishedAt",
                apiKey=self.api_key,
            )
        else:
            payload = self._get(
                "/search",
                q=query,
                page=str(page),
                max=str(page_size),
                lang="en",
                token=self.api_key,
            )
        return self._parse(payload)

    def top_headlines(self, page_size: int) -> UpstreamPage:
        if self.provider == "newsapi":
            payload = self._get(
                "/top-headlines",
                country="us",
                pageSize=str(page_size),
                apiKey=self.api_key,
            )
        else:
            payload = self._get(
                "/top-headlines",
                topic="breaking-news",
                max=str(page_size),
                lang="en",
                token=self.api_key,
            )
        return self._parse(payload)

    def _parse(self, payload: dict[str, Any]) -> UpstreamPage:
        if self.provider == "newsapi":
            if payload.get("status") == "error":
                raise NewsUpstreamError(f"NewsAPI error: {payload.get('code')}: {payload.get('message')}")
            total = payload.get("totalResults")
            image_field = "urlToImage"
        else:
            total = payload.get("totalArticles")
            image_field = "image"

        raw_articles = payload.get("articles")
        if raw_articles is None:
            raw_articles = []
        if not isinstance(raw_articles, list):
            raise NewsUpstreamError("News provider returned malformed articles list.")

        articles: list[dict[str, Any]] = []
        for article in raw_articles:
            if not isinstance(article, dict):
                continue
            articles.append(
                {
                    "title": article.get("title"),
                    "description": article.get("description"),
                    "image": article.get(image_field),
                    "url": article.get("url"),
                    "published_at": article.get("publishedAt"),
                }
            )

        try:
            total_results = int(total) if total is not None else len(articles)
        except (TypeError, ValueError):
            total_results = len(articles)
        return UpstreamPage(articles=articles, total_results=max(0, total_results))

    def _get(self, path: str, **query: str) -> dict[str, Any]:
        if not self.api_key:
            raise NewsConfigError("NEWS_API_KEY is missing; news provider is not configured.")

        request = Request(f"{self.base_url}{path}?{urlencode(query)}", method="GET", headers=DEFAULT_HTTP_HEADERS)
        try:
            with urlopen(request, timeout=self.timeout_seconds) as response:
                raw = response.read().decode("utf-8", errors="ignore")
        except HTTPError as exc:
            if exc.code == 429:
                raise NewsRateLimitError("News provider rate limited") from exc
            detail = exc.read().decode("utf-8", errors="ignore") if exc.fp else ""
            raise NewsUpstreamError(f"News provider HTTP {exc.code}: {detail[:180]}") from exc
        except URLError as exc:
            raise NewsUpstreamError(f"News provider unreachable: {exc}") from exc
        except TimeoutError as exc:
            raise NewsUpstreamError("News provider request timed out") from exc
        except (OSError, HTTPException) as exc:
            raise NewsUpstreamError(f"News provider connection failed: {exc!r}") from exc

        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise NewsUpstreamError("News provider returned invalid JSON") from exc
        if not isinstance(parsed, dict):
            raise NewsUpstreamError("News provider returned an unexpected payload.")
        logger.debug("news_provider_fetch provider=%s path=%s", self.provider, path)
        return parsed
