"""In-memory, user-scoped bookmark store deduplicated by source URL."""
from __future__ import annotations

import threading
import uuid
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Optional


class BookmarkExistsError(RuntimeError):
    """Raised when the user already bookmarked the source URL."""


class BookmarkNotFoundError(RuntimeError):
    """Raised when a bookmark does not exist for the user."""


@dataclass(frozen=True)
class Bookmark:
    id: str
    user_id: str
    title: str
    sourceUrl: str
    summary: Optional[str]
    imageUrl: Optional[str]
    publishedAt: Optional[str]
    createdAt: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class BookmarkStore:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._by_user: dict[str, dict[str, Bookmark]] = {}

    def list(self, user_id: str) -> list[Bookmark]:
        with self._lock:
            bookmarks = list(self._by_user.get(user_id, {}).values())
        # dicts keep insertion order, so newest is last
        return bookmarks[::-1]

    def add(
        self,
        user_id: str,
        *,
        title: str,
        source_url: str,
        summary: Optional[str] = None,
        image_url: Optional[str] = None,
        published_at: Optional[str] = None,
    ) -> Bookmark:
        bookmark = Bookmark(
            id=uuid.uuid4().hex,
            user_id=user_id,
            title=title,
            sourceUrl=source_url,
            summary=summary,
            imageUrl=image_url,
            publishedAt=published_at,
            createdAt=datetime.now(tz=timezone.utc).isoformat().replace("+00:00", "Z"),
        )
        with self._lock:
            owned = self._by_user.setdefault(user_id, {})
            if any(existing.sourceUrl == source_url for existing in owned.values()):
                raise BookmarkExistsError("This article is already bookmarked.")
            owned[bookmark.id] = bookmark
        return bookmark

    def delete(self, user_id: str, bookmark_id: str) -> Bookmark:
        with self._lock:
            removed = self._by_user.get(user_id, {}).pop(bookmark_id, None)
        if removed is None:
            raise BookmarkNotFoundError("Bookmark not found")
        return removed
