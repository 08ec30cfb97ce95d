"""HTTP API for news feeds, breaking news, article summaries, and bookmarks."""
from __future__ import annotations

import logging
import os
from functools import lru_cache
from typing import Optional

from fastapi import FastAPI, Header, Query
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .bookmark_store import BookmarkExistsError, BookmarkNotFoundError, BookmarkStore
from .news_cache_store import NewsCacheStoreConfigError
from .news_client import NewsConfigError, NewsRateLimitError, NewsUpstreamError
from .news_feed_service import NewsFeedService
from .summary_service import Degraded, ExtractionFailed, summarize_article


class SummaryRequest(BaseModel):
    url: Optional[str] = None
    lang: str = "en"
    title: str = ""
    summary: str = ""


class BookmarkRequest(BaseModel):
    title: str
    sourceUrl: str
    summary: Optional[str] = None
    imageUrl: Optional[str] = None
    publishedAt: Optional[str] = None


class ApiError(RuntimeError):
    def __init__(self, *, status_code: int, error_code: str, message: str, details: dict | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.error_code = error_code
        self.message = message
        self.details = details


logger = logging.getLogger(__name__)
app = FastAPI(title="NewsBrief API", version="1.0.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=[os.getenv("FRONTEND_URL", "*").strip() or "*"],
    allow_credentials=False,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)


@lru_cache(maxsize=1)
def get_feed_service() -> NewsFeedService:
    return NewsFeedService.from_env()


@lru_cache(maxsize=1)
def get_bookmark_store() -> BookmarkStore:
    return BookmarkStore()


@app.exception_handler(ApiError)
async def api_error_handler(_, exc: ApiError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": exc.error_code,
            "message": exc.message,
            "details": exc.details,
        },
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(_, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={
            "error_code": "INVALID_REQUEST",
            "message": "Request parameters are invalid.",
            "details": {"errors": exc.errors()},
        },
    )


def _feed_error(exc: Exception, label: str) -> ApiError:
    if isinstance(exc, (NewsConfigError, NewsCacheStoreConfigError)):
        return ApiError(
            status_code=500,
            error_code="NEWS_CONFIG_ERROR",
            message=f"Server configuration error: {exc}",
            details=None,
        )
    if isinstance(exc, NewsRateLimitError):
        return ApiError(
            status_code=429,
            error_code="NEWS_RATE_LIMITED",
            message=f"News provider is rate limited; failed to fetch {label}.",
            details=None,
        )
    return ApiError(
        status_code=502,
        error_code="NEWS_UPSTREAM_ERROR",
        message=f"Failed to fetch {label}.",
        details={"reason": str(exc)},
    )


def _serve_feed(category: Optional[str], page: int, force: bool) -> dict:
    label = f"{category} news" if category else "news"
    try:
        return get_feed_service().get_feed(category=category, page=page, force_refresh=force)
    except (NewsConfigError, NewsCacheStoreConfigError, NewsRateLimitError, NewsUpstreamError) as exc:
        logger.warning("news_feed_failed category=%s page=%s error=%s", category, page, exc)
        raise _feed_error(exc, label) from exc


@app.get("/")
def get_health() -> dict:
    return {"status": "ok"}


@app.get("/api/news")
def get_news(
    category: Optional[str] = Query(default=None),
    page: int = Query(default=1, ge=1),
    force: bool = Query(default=False),
) -> dict:
    return _serve_feed(category, page, force)


@app.get("/api/news/breaking")
def get_breaking_news(force: bool = Query(default=False)) -> list:
    try:
        return get_feed_service().get_breaking_news(force_refresh=force)
    except (NewsConfigError, NewsCacheStoreConfigError, NewsRateLimitError, NewsUpstreamError) as exc:
        logger.warning("breaking_news_failed error=%s", exc)
        raise _feed_error(exc, "breaking news") from exc


@app.get("/api/news/{category}")
def get_category_news(
    category: str,
    page: int = Query(default=1, ge=1),
    force: bool = Query(default=False),
) -> dict:
    return _serve_feed(category, page, force)


@app.post("/api/ai/summary")
def post_summary(payload: SummaryRequest) -> dict:
    if not (payload.url or payload.title.strip() or payload.summary.strip()):
        raise ApiError(
            status_code=400,
            error_code="INVALID_SUMMARY_REQUEST",
            message="URL or text is required",
            details=None,
        )

    result = summarize_article(
        url=payload.url or None,
        title=payload.title,
        summary=payload.summary,
        lang=payload.lang or "en",
    )
    if isinstance(result, ExtractionFailed):
        return {"error": result.error}

    body = {"summary": result.summary, "fullArticle": result.full_article}
    if isinstance(result, Degraded) and result.note:
        body["note"] = result.note
    return body


def _require_user(user_id: Optional[str]) -> str:
    cleaned = (user_id or "").strip()
    if not cleaned:
        raise ApiError(
            status_code=401,
            error_code="UNAUTHORIZED",
            message="Missing user identity.",
            details=None,
        )
    return cleaned


@app.get("/api/bookmarks")
def get_bookmarks(x_user_id: Optional[str] = Header(default=None)) -> list:
    user_id = _require_user(x_user_id)
    return [bookmark.to_dict() for bookmark in get_bookmark_store().list(user_id)]


@app.post("/api/bookmarks", status_code=201)
def post_bookmark(payload: BookmarkRequest, x_user_id: Optional[str] = Header(default=None)) -> dict:
    user_id = _require_user(x_user_id)
    try:
        bookmark = get_bookmark_store().add(
            user_id,
            title=payload.title,
            source_url=payload.sourceUrl,
            summary=payload.summary,
            image_url=payload.imageUrl,
            published_at=payload.publishedAt,
        )
    except BookmarkExistsError as exc:
        raise ApiError(
            status_code=409,
            error_code="BOOKMARK_EXISTS",
            message=str(exc),
            details={"sourceUrl": payload.sourceUrl},
        ) from exc
    logger.info("bookmark_created user_id=%s bookmark_id=%s", user_id, bookmark.id)
    return bookmark.to_dict()


@app.delete("/api/bookmarks/{bookmark_id}")
def delete_bookmark(bookmark_id: str, x_user_id: Optional[str] = Header(default=None)) -> dict:
    user_id = _require_user(x_user_id)
    try:
        get_bookmark_store().delete(user_id, bookmark_id)
    except BookmarkNotFoundError as exc:
        raise ApiError(
            status_code=404,
            error_code="BOOKMARK_NOT_FOUND",
            message=str(exc),
            details=None,
        ) from exc
    return {"message": "Bookmark removed"}
