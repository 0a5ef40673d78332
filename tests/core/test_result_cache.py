"""
Unit tests for ResultCache
"""

import pytest

from margincalc.core.cache import ResultCache, freeze
from margincalc.models.position import PositionSide


class TestFreeze:
    """Test conversion of parameters into hashable keys"""

    def test_dict_order_does_not_matter(self):
        assert freeze({"a": 1, "b": 2}) == freeze({"b": 2, "a": 1})

    def test_nested_values_are_hashable(self):
        key = freeze({"fills": [{"price": 100, "quantity": 2}], "tags": {"x"}})
        hash(key)

    def test_enum_members_use_value(self):
        assert freeze(PositionSide.LONG) == "LONG"


class TestResultCache:
    """Test LRU get/put/invalidate"""

    def test_miss_then_hit(self):
        cache = ResultCache()
        key = ResultCache.make_key("liquidation_price", {"leverage": 10, "entry_price": 50000})

        assert cache.get(key) is None
        cache.put(key, 45250.0)
        assert cache.get(key) == 45250.0
        assert cache.hits == 1
        assert cache.misses == 1

    def test_same_params_same_key(self):
        first = ResultCache.make_key("pyramid", {"side": "LONG", "levels": 3})
        second = ResultCache.make_key("pyramid", {"levels": 3, "side": "LONG"})
        assert first == second

    def test_different_calculators_do_not_collide(self):
        params = {"leverage": 10}
        assert ResultCache.make_key("a", params) != ResultCache.make_key("b", params)

    def test_lru_eviction(self):
        cache = ResultCache(max_entries=2)
        keys = [ResultCache.make_key("calc", {"n": n}) for n in range(3)]

        cache.put(keys[0], 0)
        cache.put(keys[1], 1)
        cache.get(keys[0])
        cache.put(keys[2], 2)

        assert keys[0] in cache
        assert keys[1] not in cache
        assert keys[2] in cache
        assert len(cache) == 2

    def test_invalidate_one_calculator(self):
        cache = ResultCache()
        cache.put(ResultCache.make_key("a", {"n": 1}), 1)
        cache.put(ResultCache.make_key("a", {"n": 2}), 2)
        cache.put(ResultCache.make_key("b", {"n": 1}), 3)

        assert cache.invalidate("a") == 2
        assert len(cache) == 1

    def test_clear_resets_counters(self):
        cache = ResultCache()
        key = ResultCache.make_key("a", {})
        cache.put(key, 1)
        cache.get(key)
        cache.clear()

        assert len(cache) == 0
        assert cache.hits == 0

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            ResultCache(max_entries=0)
