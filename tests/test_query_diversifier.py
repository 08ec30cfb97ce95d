from __future__ import annotations

import random
import unittest

from newsbrief.query_diversifier import CATEGORY_KEYWORDS, MAIN_TOPICS, pick_main_topic, resolve_category


class _FirstChoice:
    def choice(self, seq):
        return seq[0]


class QueryDiversifierTests(unittest.TestCase):
    def test_topic_list_is_curated_and_unique(self) -> None:
        self.assertGreaterEqual(len(MAIN_TOPICS), 30)
        self.assertEqual(len(MAIN_TOPICS), len(set(MAIN_TOPICS)))

    def test_pick_main_topic_only_returns_listed_topics(self) -> None:
        rng = random.Random(7)
        for _ in range(200):
            self.assertIn(pick_main_topic(rng=rng), MAIN_TOPICS)

    def test_pick_main_topic_reaches_every_topic(self) -> None:
        rng = random.Random(42)
        seen = {pick_main_topic(rng=rng) for _ in range(5000)}
        self.assertEqual(seen, set(MAIN_TOPICS))

    def test_pick_main_topic_uses_injected_source(self) -> None:
        self.assertEqual(pick_main_topic(["a", "b"], rng=_FirstChoice()), "a")

    def test_pick_main_topic_rejects_empty_list(self) -> None:
        with self.assertRaises(ValueError):
            pick_main_topic([])

    def test_resolve_sports_returns_keyword_not_umbrella(self) -> None:
        rng = random.Random(3)
        for _ in range(200):
            keyword = resolve_category("sports", rng=rng)
            self.assertIn(keyword, CATEGORY_KEYWORDS["sports"])
            self.assertNotEqual(keyword, "sports")

    def test_resolve_category_is_case_insensitive(self) -> None:
        self.assertEqual(resolve_category("  GeoPolitics ", rng=_FirstChoice()), CATEGORY_KEYWORDS["geopolitics"][0])

    def test_unknown_category_passes_through_verbatim(self) -> None:
        self.assertEqual(resolve_category("Quantum Computing"), "Quantum Computing")

    def test_custom_keyword_table(self) -> None:
        table = {"pets": ("cats", "dogs")}
        self.assertEqual(resolve_category("pets", keywords=table, rng=_FirstChoice()), "cats")
        self.assertEqual(resolve_category("sports", keywords=table), "sports")


if __name__ == "__main__":
    unittest.main()
