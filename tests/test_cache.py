import json
import os
import sys
import unittest

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.persistence.cache import CACHE_KEY_PREFIX, TTLCache, fingerprint
from core.persistence.kv_store import InMemoryKeyValueStore
from core.schemas.illustration import CACHE_LIFETIMES_MS, DAY_MS, HOUR_MS, CacheCategory
from tests.dummies import BrokenStore, FakeClock, FlakyStore


class TestTTLCache(unittest.TestCase):

    def setUp(self):
        self.store = InMemoryKeyValueStore()
        self.clock = FakeClock()
        self.cache = TTLCache(self.store, clock=self.clock)

    def test_put_then_get_returns_same_data(self):
        data = {"summary": "Статья о космосе", "points": [1, 2, 3]}
        self.cache.put("cache_a", CacheCategory.AI, data)
        self.assertEqual(self.cache.get("cache_a", CacheCategory.AI), data)

    def test_entry_is_returned_until_expiry_and_deleted_after(self):
        self.cache.put("cache_p", CacheCategory.PARSE, "body")

        self.clock.advance(24 * HOUR_MS)
        self.assertEqual(self.cache.get("cache_p", CacheCategory.PARSE), "body")

        self.clock.advance(1)
        self.assertIsNone(self.cache.get("cache_p", CacheCategory.PARSE))
        self.assertIsNone(self.store.get("cache_p"))

    def test_ai_and_translate_live_for_seven_days(self):
        self.cache.put("cache_ai", CacheCategory.AI, "x")
        self.cache.put("cache_tr", CacheCategory.TRANSLATE, "y")
        self.clock.advance(7 * DAY_MS + 1)
        self.assertIsNone(self.cache.get("cache_ai", CacheCategory.AI))
        self.assertIsNone(self.cache.get("cache_tr", CacheCategory.TRANSLATE))

    def test_images_are_never_cached(self):
        self.cache.put("cache_img", CacheCategory.IMAGE, "data:image/png;base64,AAAA")
        self.assertIsNone(self.cache.get("cache_img", CacheCategory.IMAGE))
        self.assertEqual(self.store.keys(), [])

    def test_oversized_payload_is_skipped(self):
        cache = TTLCache(self.store, clock=self.clock, max_entry_bytes=100)
        cache.put("cache_big", CacheCategory.AI, "x" * 200)
        self.assertIsNone(cache.get("cache_big", CacheCategory.AI))
        self.assertEqual(self.store.keys(), [])

    def test_sweep_removes_expired_and_corrupt_entries(self):
        self.cache.put("cache_old", CacheCategory.PARSE, "old")
        self.clock.advance(25 * HOUR_MS)
        self.cache.put("cache_new", CacheCategory.AI, "new")
        self.store.set("cache_bad", "{not json")
        self.store.set("unrelated", "keep")

        self.assertEqual(self.cache.sweep_expired(), 2)
        self.assertEqual(sorted(self.store.keys()), ["cache_new", "unrelated"])

    def test_evict_oldest_uses_creation_time(self):
        for name in ("first", "second", "third"):
            self.cache.put(f"cache_{name}", CacheCategory.AI, name)
            self.clock.advance(1000)

        self.assertEqual(self.cache.evict_oldest(2), 2)
        self.assertEqual(self.store.keys(), ["cache_third"])

    def test_clear_all_leaves_other_records(self):
        self.cache.put("cache_a", CacheCategory.AI, "a")
        self.store.set("article_processor_history", "[]")
        self.assertEqual(self.cache.clear_all(), 1)
        self.assertEqual(self.store.keys(), ["article_processor_history"])

    def test_stats(self):
        self.cache.put("cache_a", CacheCategory.AI, "a")
        self.clock.advance(500)
        self.cache.put("cache_b", CacheCategory.AI, "b")
        self.cache.put("cache_c", CacheCategory.PARSE, "c")

        stats = self.cache.stats()
        self.assertEqual(stats.total, 3)
        self.assertEqual(stats.by_category, {"ai": 2, "parse": 1})
        self.assertEqual(stats.oldest_entry, self.clock.now - 500)
        self.assertEqual(stats.newest_entry, self.clock.now)
        self.assertGreater(stats.total_size, 0)

    def test_stored_entry_layout(self):
        self.cache.put("cache_a", CacheCategory.TRANSLATE, {"text": "hi"})
        stored = json.loads(self.store.get("cache_a"))
        self.assertEqual(stored["category"], "translate")
        self.assertEqual(stored["expires_at"] - stored["created_at"], 7 * DAY_MS)


class TestCacheQuotaRecovery(unittest.TestCase):

    def setUp(self):
        self.store = FlakyStore()
        self.clock = FakeClock()
        self.cache = TTLCache(self.store, clock=self.clock)

    def test_sweeps_expired_entries_then_retries(self):
        self.cache.put("cache_stale", CacheCategory.PARSE, "stale")
        self.clock.advance(25 * HOUR_MS)
        self.cache.put("cache_fresh", CacheCategory.AI, "fresh")

        self.store.fail_times = 1
        self.cache.put("cache_new", CacheCategory.AI, "new")

        self.assertEqual(sorted(self.store.keys()), ["cache_fresh", "cache_new"])

    def test_evicts_oldest_half_when_sweep_is_not_enough(self):
        for index in range(4):
            self.cache.put(f"cache_{index}", CacheCategory.AI, index)
            self.clock.advance(1000)

        self.store.fail_times = 2
        self.cache.put("cache_new", CacheCategory.AI, "new")

        self.assertEqual(sorted(self.store.keys()), ["cache_2", "cache_3", "cache_new"])

    def test_drops_write_after_third_failure(self):
        self.cache.put("cache_a", CacheCategory.AI, "a")
        self.store.fail_times = 3

        self.cache.put("cache_new", CacheCategory.AI, "new")

        self.assertEqual(self.store.failed_writes, 3)
        self.assertIsNone(self.cache.get("cache_new", CacheCategory.AI))


def test_get_is_a_miss_when_store_fails():
    cache = TTLCache(BrokenStore())
    assert cache.get("cache_x", CacheCategory.AI) is None
    cache.put("cache_x", CacheCategory.AI, "value")
    assert cache.sweep_expired() == 0
    assert cache.stats().total == 0


def test_lifetimes_are_immutable():
    with pytest.raises(TypeError):
        CACHE_LIFETIMES_MS[CacheCategory.AI] = 1  # type: ignore[index]
    assert CACHE_LIFETIMES_MS[CacheCategory.IMAGE] is None


def test_fingerprint_is_deterministic_and_prefixed():
    key = fingerprint("https://example.com/a", "about", "ru")
    assert key.startswith(CACHE_KEY_PREFIX)
    assert key == fingerprint("https://example.com/a", "about", "ru")
    assert key != fingerprint("https://example.com/a", "about", "me")
    assert key != fingerprint("https://example.com/a", "thesis", "ru")


def test_fingerprint_ignores_extra_param_order():
    first = fingerprint("u", "translate", "en", {"b": 2, "a": 1})
    second = fingerprint("u", "translate", "en", {"a": 1, "b": 2})
    assert first == second
    assert first != fingerprint("u", "translate", "en", {"a": 1, "b": 3})


def test_fingerprint_distinguishes_extra_param_types():
    assert fingerprint("u", "about", "en", {"n": 1}) != fingerprint("u", "about", "en", {"n": "1"})
    assert fingerprint("u", "about", "en", {"flag": True}) != fingerprint("u", "about", "en", {"flag": "True"})
    assert fingerprint("u", "about", "en", {"opts": {"b": 1, "a": 2}}) == \
        fingerprint("u", "about", "en", {"opts": {"a": 2, "b": 1}})
