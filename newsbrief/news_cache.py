"""TTL caches for news feed payloads, one instance per logical namespace."""
from __future__ import annotations

import copy
import logging
import os
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional, Protocol

from .news_cache_store import SupabaseNewsCache

logger = logging.getLogger(__name__)

Clock = Callable[[], float]

FEED_NAMESPACE = "feed"
BREAKING_NAMESPACE = "breaking"


class NewsCache(Protocol):
    namespace: str
    ttl_seconds: float

    def get(self, key: str) -> Optional[Any]:
        ...

    def set(self, key: str, payload: Any) -> None:
        ...


@dataclass(frozen=True)
class CacheEntry:
    key: str
    payload: Any
    stored_at: float


def cache_key(namespace: str, query: str, page: int = 1) -> str:
    cleaned = " ".join(query.strip().lower().split()) or "main"
    return f"{namespace}:{cleaned}:page={page}"


class MemoryNewsCache:
    """Process-local cache. Stale entries stay in place until overwritten.

    Payloads are copied on set and on get.
    """

    def __init__(self, namespace: str, ttl_seconds: float, clock: Clock = time.time) -> None:
        self.namespace = namespace
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.stored_at >= self.ttl_seconds:
            return None
        return copy.deepcopy(entry.payload)

    def set(self, key: str, payload: Any) -> None:
        self._entries[key] = CacheEntry(key=key, payload=copy.deepcopy(payload), stored_at=self._clock())

    def __len__(self) -> int:
        return len(self._entries)


def build_cache(namespace: str, ttl_seconds: float) -> NewsCache:
    backend = os.getenv("NEWS_CACHE_BACKEND", "memory").strip().lower()
    if backend == "supabase":
        return SupabaseNewsCache.from_env(namespace=namespace, ttl_seconds=ttl_seconds)
    if backend != "memory":
        logger.warning("news_cache_unknown_backend backend=%s fallback=memory", backend)
    return MemoryNewsCache(namespace=namespace, ttl_seconds=ttl_seconds)
