from __future__ import annotations

import unittest
from unittest.mock import patch

from newsbrief import news_feed_service
from newsbrief.news_cache import MemoryNewsCache, build_cache, cache_key
from newsbrief.news_cache_store import SupabaseNewsCache


class FakeClock:
    def __init__(self, now: float = 1_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class MemoryNewsCacheTests(unittest.TestCase):
    def test_get_returns_payload_before_ttl(self) -> None:
        clock = FakeClock()
        cache = MemoryNewsCache("feed", ttl_seconds=600, clock=clock)
        cache.set("feed:sports:page=1", {"articles": []})

        clock.now += 599.9
        self.assertEqual(cache.get("feed:sports:page=1"), {"articles": []})

    def test_get_treats_expired_entry_as_absent(self) -> None:
        clock = FakeClock()
        cache = MemoryNewsCache("feed", ttl_seconds=600, clock=clock)
        cache.set("k", [1, 2])

        clock.now += 600
        self.assertIsNone(cache.get("k"))
        # stale entries are not evicted
        self.assertEqual(len(cache), 1)

    def test_set_overwrites_and_resets_timestamp(self) -> None:
        clock = FakeClock()
        cache = MemoryNewsCache("breaking", ttl_seconds=10, clock=clock)
        cache.set("k", "old")
        clock.now += 9
        cache.set("k", "new")
        clock.now += 9

        self.assertEqual(cache.get("k"), "new")
        self.assertEqual(len(cache), 1)

    def test_returned_payload_is_a_copy(self) -> None:
        clock = FakeClock()
        cache = MemoryNewsCache("feed", ttl_seconds=600, clock=clock)
        payload = {"articles": [{"title": "a"}], "totalPages": 1}
        cache.set("k", payload)

        payload["articles"].append({"title": "b"})
        cache.get("k")["articles"].clear()

        self.assertEqual(cache.get("k"), {"articles": [{"title": "a"}], "totalPages": 1})

    def test_missing_key_is_absent(self) -> None:
        cache = MemoryNewsCache("feed", ttl_seconds=10, clock=FakeClock())
        self.assertIsNone(cache.get("nope"))

    def test_namespaces_keep_independent_ttls(self) -> None:
        clock = FakeClock()
        feed = MemoryNewsCache("feed", ttl_seconds=900, clock=clock)
        breaking = MemoryNewsCache("breaking", ttl_seconds=600, clock=clock)
        feed.set("k", "feed")
        breaking.set("k", "breaking")

        clock.now += 700
        self.assertEqual(feed.get("k"), "feed")
        self.assertIsNone(breaking.get("k"))


class CacheKeyTests(unittest.TestCase):
    def test_cache_key_is_deterministic_composite(self) -> None:
        self.assertEqual(cache_key("feed", "Formula 1", 2), "feed:formula 1:page=2")
        self.assertEqual(cache_key("feed", "  formula   1 ", 2), cache_key("feed", "Formula 1", 2))
        self.assertNotEqual(cache_key("feed", "tennis", 1), cache_key("feed", "tennis", 2))
        self.assertNotEqual(cache_key("feed", "tennis", 1), cache_key("breaking", "tennis", 1))

    def test_cache_key_uses_main_for_empty_query(self) -> None:
        self.assertEqual(cache_key("feed", "", 1), "feed:main:page=1")


class BuildCacheTests(unittest.TestCase):
    def test_memory_backend_is_default(self) -> None:
        with patch.dict("os.environ", {"NEWS_CACHE_BACKEND": ""}, clear=False):
            cache = build_cache("feed", 600)
        self.assertIsInstance(cache, MemoryNewsCache)
        self.assertEqual(cache.ttl_seconds, 600)

    def test_supabase_backend_from_env(self) -> None:
        env = {
            "NEWS_CACHE_BACKEND": "supabase",
            "SUPABASE_URL": "https://demo.supabase.co/",
            "SUPABASE_SERVICE_ROLE_KEY": "key",
        }
        with patch.dict("os.environ", env, clear=False):
            cache = build_cache("breaking", 600)
        self.assertIsInstance(cache, SupabaseNewsCache)
        self.assertEqual(cache.namespace, "breaking")

    def test_feed_ttl_defaults_follow_backend(self) -> None:
        base = {"NEWS_FEED_CACHE_TTL_SEC": "", "NEWS_BREAKING_CACHE_TTL_SEC": "600"}
        with patch.dict("os.environ", {**base, "NEWS_CACHE_BACKEND": "memory"}, clear=False):
            memory_config = news_feed_service._load_config()
        with patch.dict("os.environ", {**base, "NEWS_CACHE_BACKEND": "supabase"}, clear=False):
            persistent_config = news_feed_service._load_config()
        self.assertEqual(memory_config.feed_cache_ttl_seconds, 600)
        self.assertEqual(persistent_config.feed_cache_ttl_seconds, 900)
        self.assertEqual(memory_config.page_size, 10)
        self.assertEqual(memory_config.breaking_page_size, 5)


if __name__ == "__main__":
    unittest.main()
