"""
Tests for the CacheStore facade.

Every store here runs on a FakeClock with the expiration worker disabled,
so time only moves when a test advances it.
"""

import unittest
from datetime import timedelta

from datacache.core.exceptions import CacheError, ValidationError
from datacache.types.models import CacheConfig
from datacache.utils.cache import CacheStore
from tests.mocks import FakeClock, RecordingPolicy


class CacheStoreTestCase(unittest.TestCase):
    """Base class building a store on a virtual clock."""

    max_size = 1000

    def setUp(self):
        self.clock = FakeClock()
        self.cache = CacheStore(
            default_ttl=300,
            max_size=self.max_size,
            clock=self.clock,
            eager_expiry=False
        )

    def tearDown(self):
        self.cache.close()


class TestInitialization(unittest.TestCase):
    """Test cases for store construction."""

    def test_defaults(self):
        cache = CacheStore(eager_expiry=False)
        self.assertEqual(cache.default_ttl, 300.0)
        self.assertEqual(cache.max_size, 1000)
        self.assertEqual(len(cache), 0)
        cache.close()

    def test_timedelta_default_ttl(self):
        cache = CacheStore(default_ttl=timedelta(minutes=2), eager_expiry=False)
        self.assertEqual(cache.default_ttl, 120.0)
        cache.close()

    def test_rejects_non_positive_limits(self):
        with self.assertRaises(ValidationError) as ctx:
            CacheStore(default_ttl=0, eager_expiry=False)
        self.assertEqual(ctx.exception.field_name, "default_ttl")

        with self.assertRaises(ValidationError) as ctx:
            CacheStore(max_size=0, eager_expiry=False)
        self.assertEqual(ctx.exception.field_name, "max_size")
        self.assertEqual(ctx.exception.error_code, "VALIDATION_ERROR")

    def test_rejects_non_integer_max_size(self):
        with self.assertRaises(ValidationError) as ctx:
            CacheStore(max_size=True, eager_expiry=False)
        self.assertEqual(ctx.exception.context["actual_type"], "bool")

        with self.assertRaises(ValidationError):
            CacheStore(max_size=2.5, eager_expiry=False)

    def test_rejects_negative_default_ttl(self):
        with self.assertRaises(ValidationError):
            CacheStore(default_ttl=-5, eager_expiry=False)

    def test_from_config(self):
        clock = FakeClock()
        config = CacheConfig(default_ttl=60.0, max_size=5, eager_expiry=False)
        cache = CacheStore.from_config(config, clock=clock)

        self.assertEqual(cache.default_ttl, 60.0)
        self.assertEqual(cache.max_size, 5)
        cache.close()


class TestPutGet(CacheStoreTestCase):
    """Test cases for storing and reading values."""

    def test_round_trip(self):
        self.cache.put("k", {"id": 1}, ttl=10)
        self.assertEqual(self.cache.get("k"), {"id": 1})
        self.assertIsNone(self.cache.get("missing"))

    def test_round_trip_just_before_expiry(self):
        self.cache.put("k", "v", ttl=10)
        self.clock.advance(9.999)
        self.assertEqual(self.cache.get("k"), "v")

    def test_empty_key_is_ignored(self):
        self.cache.put("", "v")
        self.assertEqual(self.cache.size(), 0)
        self.assertIsNone(self.cache.get(""))
        self.assertFalse(self.cache.contains(""))
        self.assertFalse(self.cache.remove(""))

    def test_non_string_key_is_ignored(self):
        self.cache.put(None, "v")
        self.cache.put(42, "v")
        self.assertEqual(self.cache.size(), 0)
        self.assertIsNone(self.cache.get(None))

    def test_default_ttl_applies(self):
        self.cache.put("k", "v")
        self.clock.advance(299)
        self.assertEqual(self.cache.get("k"), "v")
        self.clock.advance(1)
        self.assertIsNone(self.cache.get("k"))

    def test_timedelta_ttl(self):
        self.cache.put("k", "v", ttl=timedelta(seconds=30))
        self.clock.advance(31)
        self.assertIsNone(self.cache.get("k"))

    def test_negative_ttl_is_immediately_stale(self):
        self.cache.put("k", "v", ttl=-1)
        self.assertEqual(self.cache.size(), 1)
        self.assertIsNone(self.cache.get("k"))
        self.assertEqual(self.cache.size(), 0)

    def test_negative_timedelta_ttl_is_immediately_stale(self):
        self.cache.put("k", "v", ttl=timedelta(seconds=-30))
        self.assertFalse(self.cache.contains("k"))

    def test_non_numeric_ttl_raises_validation_error(self):
        with self.assertRaises(ValidationError) as ctx:
            self.cache.put("k", "v", ttl="5")
        self.assertEqual(ctx.exception.field_name, "ttl")

        with self.assertRaises(ValidationError):
            self.cache.put("k", "v", ttl=True)
        self.assertEqual(self.cache.size(), 0)

    def test_nan_ttl_raises_validation_error(self):
        with self.assertRaises(ValidationError) as ctx:
            self.cache.put("k", "v", ttl=float("nan"))
        self.assertEqual(ctx.exception.field_name, "ttl")
        self.assertEqual(self.cache.size(), 0)
        self.assertEqual(len(self.cache._scheduler), 0)

    def test_zero_ttl_is_immediately_stale(self):
        self.cache.put("k", "v", ttl=0)
        self.assertIsNone(self.cache.get("k"))

    def test_falsy_values_are_cached(self):
        self.cache.put("zero", 0)
        self.cache.put("empty", [])
        self.assertEqual(self.cache.get("zero"), 0)
        self.assertEqual(self.cache.get("empty"), [])

    def test_expected_type_mismatch_fails_closed(self):
        self.cache.put("k", "a string")

        self.assertIsNone(self.cache.get("k", expected_type=dict))
        self.assertEqual(self.cache.get("k", expected_type=str), "a string")
        # A mismatch does not drop the entry
        self.assertTrue(self.cache.contains("k"))


class TestExpiry(CacheStoreTestCase):
    """Test cases for lazy and eager expiry."""

    def test_lazy_expiry_on_get(self):
        self.cache.put("k", "v", ttl=10)
        self.clock.advance(11)

        self.assertIsNone(self.cache.get("k"))
        self.assertFalse(self.cache.contains("k"))
        self.assertEqual(self.cache.size(), 0)

    def test_lazy_expiry_on_contains(self):
        self.cache.put("k", "v", ttl=10)
        self.clock.advance(10)

        self.assertFalse(self.cache.contains("k"))
        self.assertNotIn("k", self.cache.keys())

    def test_lazy_expiry_cancels_handle(self):
        self.cache.put("k", "v", ttl=10)
        self.clock.advance(10)
        self.cache.get("k")

        self.assertIsNone(self.cache.get_key_info("k"))
        self.assertEqual(self.cache.run_pending(), 0)

    def test_eager_expiry_fires_scheduled_removal(self):
        self.cache.put("k", "v", ttl=10)
        self.clock.advance(10)

        self.assertEqual(self.cache.run_pending(), 1)
        self.assertEqual(self.cache.keys(), [])
        self.assertEqual(self.cache.stats().expirations, 1)

    def test_eager_expiry_does_not_fire_early(self):
        self.cache.put("k", "v", ttl=10)
        self.clock.advance(9)

        self.assertEqual(self.cache.run_pending(), 0)
        self.assertEqual(self.cache.keys(), ["k"])

    def test_overwrite_cancels_previous_expiration(self):
        self.cache.put("k", "v1", ttl=5)
        self.clock.set(4)
        self.cache.put("k", "v2", ttl=5)
        self.clock.set(6)

        self.cache.run_pending()
        self.assertEqual(self.cache.get("k"), "v2")

        self.clock.set(9)
        self.cache.run_pending()
        self.assertIsNone(self.cache.get("k"))

    def test_overwrite_with_shorter_ttl(self):
        self.cache.put("k", "v1", ttl=100)
        self.cache.put("k", "v2", ttl=1)
        self.clock.advance(2)

        self.assertEqual(self.cache.run_pending(), 1)
        self.assertEqual(self.cache.size(), 0)

    def test_stale_expiration_does_not_remove_newer_entry(self):
        self.cache.put("k", "v1", ttl=10)
        old_entry = self.cache._entries["k"]
        self.cache.put("k", "v2", ttl=10)

        # An expiration that raced the overwrite still carries the old entry
        self.cache._expire_entry("k", old_entry)

        self.assertEqual(self.cache.get("k"), "v2")
        self.assertEqual(self.cache.stats().expirations, 0)

    def test_evict_expired_sweeps_only_stale_entries(self):
        self.cache.put("old1", 1, ttl=5)
        self.cache.put("old2", 2, ttl=5)
        self.cache.put("fresh", 3, ttl=50)
        self.clock.advance(6)

        self.assertEqual(self.cache.evict_expired(), 2)
        self.assertEqual(self.cache.keys(), ["fresh"])
        # Handles of swept entries are gone too
        self.assertEqual(self.cache.run_pending(), 0)

    def test_refresh_restarts_ttl(self):
        self.cache.put("k", "v", ttl=10)
        self.clock.advance(8)
        self.assertTrue(self.cache.refresh("k", ttl=10))

        self.clock.advance(8)
        self.cache.run_pending()
        self.assertEqual(self.cache.get("k"), "v")

    def test_refresh_missing_or_stale_key(self):
        self.assertFalse(self.cache.refresh("missing"))

        self.cache.put("k", "v", ttl=1)
        self.clock.advance(2)
        self.assertFalse(self.cache.refresh("k"))


class TestEviction(CacheStoreTestCase):
    """Test cases for capacity eviction."""

    max_size = 2

    def test_evicts_soonest_expiring_entry(self):
        self.cache.put("a", 1, ttl=100)
        self.cache.put("b", 2, ttl=50)
        self.cache.put("c", 3, ttl=10)

        self.assertEqual(sorted(self.cache.keys()), ["a", "c"])
        self.assertEqual(self.cache.stats().evictions, 1)

    def test_size_never_exceeds_max(self):
        for i in range(20):
            self.cache.put(f"key{i}", i, ttl=100 - i)
            self.assertLessEqual(self.cache.size(), self.max_size)

    def test_tie_breaks_on_first_inserted(self):
        self.cache.put("first", 1, ttl=10)
        self.cache.put("second", 2, ttl=10)
        self.cache.put("third", 3, ttl=10)

        self.assertEqual(sorted(self.cache.keys()), ["second", "third"])

    def test_evicted_entry_handle_is_cancelled(self):
        self.cache.put("a", 1, ttl=5)
        self.cache.put("b", 2, ttl=50)
        self.cache.put("c", 3, ttl=50)
        self.clock.advance(6)

        self.assertEqual(self.cache.run_pending(), 0)
        self.assertEqual(sorted(self.cache.keys()), ["b", "c"])

    def test_custom_policy_is_consulted(self):
        policy = RecordingPolicy()
        cache = CacheStore(max_size=1, clock=self.clock, eager_expiry=False, eviction_policy=policy)

        cache.put("a", 1)
        cache.put("b", 2)

        self.assertEqual(policy.victims, ["a"])
        self.assertEqual(cache.keys(), ["b"])
        cache.close()


class TestInvalidation(CacheStoreTestCase):
    """Test cases for removal operations."""

    def test_remove(self):
        self.cache.put("key1", "value1")
        self.cache.put("key2", "value2")

        self.assertTrue(self.cache.remove("key1"))
        self.assertIsNone(self.cache.get("key1"))
        self.assertEqual(self.cache.get("key2"), "value2")

    def test_remove_absent_key_is_noop(self):
        self.cache.put("key1", "value1")

        self.assertFalse(self.cache.remove("nonexistent"))
        self.assertEqual(self.cache.size(), 1)

    def test_remove_cancels_expiration(self):
        self.cache.put("k", "v", ttl=5)
        self.cache.remove("k")
        self.cache.put("k", "v2", ttl=50)
        self.clock.advance(6)

        self.assertEqual(self.cache.run_pending(), 0)
        self.assertEqual(self.cache.get("k"), "v2")

    def test_remove_by_pattern(self):
        self.cache.put("user_1", "a")
        self.cache.put("user_2", "b")
        self.cache.put("post_1", "c")

        self.assertEqual(self.cache.remove_by_pattern("^user_"), 2)
        self.assertEqual(self.cache.keys(), ["post_1"])

    def test_remove_by_pattern_searches_whole_key(self):
        self.cache.put("user_posts_42", "a")
        self.cache.put("post_comments_42", "b")
        self.cache.put("post_comments_7", "c")

        self.assertEqual(self.cache.remove_by_pattern("_42$"), 2)
        self.assertEqual(self.cache.keys(), ["post_comments_7"])

    def test_remove_by_pattern_no_match(self):
        self.cache.put("post_1", "c")
        self.assertEqual(self.cache.remove_by_pattern("^user_"), 0)
        self.assertEqual(self.cache.size(), 1)

    def test_remove_by_invalid_pattern_raises(self):
        self.cache.put("post_1", "c")
        with self.assertRaises(CacheError):
            self.cache.remove_by_pattern("([")
        self.assertEqual(self.cache.size(), 1)

    def test_clear(self):
        self.cache.put("key1", "value1", ttl=5)
        self.cache.put("key2", "value2", ttl=5)

        self.assertEqual(self.cache.clear(), 2)
        self.assertEqual(len(self.cache), 0)

        self.clock.advance(6)
        self.assertEqual(self.cache.run_pending(), 0)


class TestIntrospection(CacheStoreTestCase):
    """Test cases for stats, keys and key info."""

    def test_stats_snapshot_does_not_mutate(self):
        self.cache.put("stale", 1, ttl=5)
        self.cache.put("live", 2, ttl=50)
        self.clock.advance(10)

        stats = self.cache.stats()
        self.assertEqual(stats.size, 2)
        self.assertEqual(stats.active, 1)
        self.assertEqual(stats.expired, 1)
        self.assertEqual(stats.max_size, 1000)
        self.assertEqual(self.cache.size(), 2)

    def test_stats_counters(self):
        self.cache.put("key1", "value1")
        self.cache.get("key1")
        self.cache.get("nonexistent")

        stats = self.cache.stats()
        self.assertEqual(stats.hits, 1)
        self.assertEqual(stats.misses, 1)
        self.assertEqual(stats.hit_rate, 0.5)

        data = stats.to_dict()
        for field_name in ('size', 'active', 'expired', 'max_size'):
            self.assertIn(field_name, data)

    def test_keys_is_a_snapshot(self):
        self.cache.put("a", 1)
        keys = self.cache.keys()
        self.cache.put("b", 2)

        self.assertEqual(keys, ["a"])
        self.assertEqual(sorted(self.cache.keys()), ["a", "b"])

    def test_contains_operator(self):
        self.cache.put("a", 1)
        self.assertIn("a", self.cache)
        self.assertNotIn("b", self.cache)

    def test_key_info(self):
        self.cache.put("a", 1, ttl=10)
        self.clock.advance(4)

        info = self.cache.get_key_info("a")
        self.assertEqual(info['age_seconds'], 4)
        self.assertEqual(info['ttl_remaining'], 6)
        self.assertFalse(info['is_expired'])
        self.assertTrue(info['expiration_pending'])
        self.assertIsNone(self.cache.get_key_info("b"))


class TestGetOrSet(CacheStoreTestCase):
    """Test cases for the read-through helper."""

    def test_computes_once(self):
        calls = []

        def load():
            calls.append(1)
            return "computed_value"

        self.assertEqual(self.cache.get_or_set("key1", load), "computed_value")
        self.assertEqual(self.cache.get_or_set("key1", load), "computed_value")
        self.assertEqual(len(calls), 1)

    def test_none_is_not_cached(self):
        self.assertIsNone(self.cache.get_or_set("key1", lambda: None))
        self.assertFalse(self.cache.contains("key1"))

    def test_factory_errors_propagate(self):
        def boom():
            raise RuntimeError("backing store down")

        with self.assertRaises(RuntimeError):
            self.cache.get_or_set("key1", boom)
        self.assertEqual(self.cache.size(), 0)


if __name__ == "__main__":
    unittest.main()
