"""Supabase-backed store for news feed cache entries."""
from __future__ import annotations

import json
import os
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from http.client import HTTPException
from typing import Any, Callable, Optional
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen


class NewsCacheStoreConfigError(RuntimeError):
    """Raised when Supabase config is missing."""


class NewsCacheStoreError(RuntimeError):
    """Raised when Supabase request fails."""


@dataclass(frozen=True)
class SupabaseConfig:
    url: str
    service_key: str
    timeout_seconds: float


def _parse_updated_at(text: str) -> Optional[float]:
    value = text.strip()
    if not value:
        return None
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(value)
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.timestamp()


def _isoformat(timestamp: float) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).isoformat().replace("+00:00", "Z")


class SupabaseNewsCache:
    """Persistent cache variant; entries survive restarts and are shared by instances."""

    def __init__(
        self,
        config: SupabaseConfig,
        namespace: str,
        ttl_seconds: float,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._config = config
        self.namespace = namespace
        self.ttl_seconds = ttl_seconds
        self._clock = clock

    @classmethod
    def from_env(cls, *, namespace: str, ttl_seconds: float) -> "SupabaseNewsCache":
        url = os.getenv("SUPABASE_URL", "").strip().rstrip("/")
        key = os.getenv("SUPABASE_SERVICE_ROLE_KEY", "").strip()
        timeout = float(os.getenv("NEWS_CACHE_STORE_TIMEOUT_SEC", "8"))
        if not url or not key:
            raise NewsCacheStoreConfigError("SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY is missing.")
        return cls(
            SupabaseConfig(url=url, service_key=key, timeout_seconds=max(1.0, timeout)),
            namespace=namespace,
            ttl_seconds=ttl_seconds,
        )

    def get(self, key: str) -> Optional[Any]:
        params = urlencode(
            {
                "select": "key,payload,updated_at",
                "key": f"eq.{key}",
                "limit": "1",
            }
        )
        rows = self._request_json("GET", f"/rest/v1/news_cache?{params}")
        if not rows:
            return None
        row = rows[0]
        stored_at = _parse_updated_at(str(row.get("updated_at") or ""))
        if stored_at is None or self._clock() - stored_at >= self.ttl_seconds:
            return None
        return row.get("payload")

    def set(self, key: str, payload: Any) -> None:
        body = [
            {
                "key": key,
                "namespace": self.namespace,
                "payload": payload,
                "updated_at": _isoformat(self._clock()),
            }
        ]
        self._request_json(
            "POST",
            "/rest/v1/news_cache?on_conflict=key",
            body=body,
            extra_headers={"Prefer": "resolution=merge-duplicates,return=minimal"},
        )

    def _request_json(
        self,
        method: str,
        path: str,
        body: Any | None = None,
        extra_headers: dict[str, str] | None = None,
    ) -> Any:
        headers = {
            "apikey": self._config.service_key,
            "Authorization": f"Bearer {self._config.service_key}",
            "Content-Type": "application/json",
        }
        if extra_headers:
            headers.update(extra_headers)

        data = None if body is None else json.dumps(body).encode("utf-8")
        request = Request(
            f"{self._config.url}{path}",
            data=data,
            method=method,
            headers=headers,
        )
        try:
            with urlopen(request, timeout=self._config.timeout_seconds) as response:
                raw = response.read().decode("utf-8")
        except HTTPError as exc:
            detail = exc.read().decode("utf-8", errors="ignore") if exc.fp else ""
            raise NewsCacheStoreError(f"Supabase HTTP {exc.code}: {detail[:180]}") from exc
        except URLError as exc:
            raise NewsCacheStoreError(f"Supabase unavailable: {exc}") from exc
        except (OSError, HTTPException) as exc:
            raise NewsCacheStoreError(f"Supabase request failed: {exc!r}") from exc

        if not raw:
            return []
        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            raise NewsCacheStoreError("Supabase response is not valid JSON.") from exc
