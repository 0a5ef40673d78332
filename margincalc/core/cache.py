"""
Keyed result cache for pure calculator outputs.

Calculators are referentially transparent, so a result can be reused
whenever the full input tuple repeats. The cache is an explicit object
owned by whoever injects it (typically a CalculatorService); there is no
module-level cache.

Key Features:
- Keys are (calculator name, frozen parameter tuple)
- Fixed-size LRU eviction prevents unbounded memory growth
- Per-calculator invalidation that never touches other calculators
"""

import logging
from collections import OrderedDict
from typing import Any, Dict, Hashable, Optional, Tuple

CacheKey = Tuple[str, Hashable]


def freeze(value: Any) -> Hashable:
    """
    Convert nested dicts/lists/sets into hashable tuples.

    Dict items are sorted by key so that two equal parameter dicts always
    yield the same key regardless of insertion order.
    """
    if isinstance(value, dict):
        return tuple(sorted((str(k), freeze(v)) for k, v in value.items()))
    if isinstance(value, (list, tuple)):
        return tuple(freeze(v) for v in value)
    if isinstance(value, (set, frozenset)):
        return tuple(sorted(freeze(v) for v in value))
    if hasattr(value, "value") and hasattr(value, "name"):
        # Enum members
        return value.value
    return value


class ResultCache:
    """
    Bounded LRU cache for calculation results.

    Usage:
        cache = ResultCache(max_entries=256)
        key = cache.make_key('liquidation_price', params.model_dump())
        result = cache.get(key)
        if result is None:
            result = compute()
            cache.put(key, result)
    """

    def __init__(self, max_entries: int = 256):
        if max_entries < 1:
            raise ValueError(f"max_entries must be >= 1, got {max_entries}")
        self.max_entries = max_entries
        self._entries: "OrderedDict[CacheKey, Any]" = OrderedDict()
        self.hits = 0
        self.misses = 0
        self.logger = logging.getLogger(__name__)

    @staticmethod
    def make_key(calculator: str, params: Dict[str, Any]) -> CacheKey:
        """Build a cache key from the calculator name and its full parameters."""
        return (calculator, freeze(params))

    def get(self, key: CacheKey) -> Optional[Any]:
        """Return the cached result or None, refreshing LRU order on hit."""
        if key in self._entries:
            self._entries.move_to_end(key)
            self.hits += 1
            return self._entries[key]
        self.misses += 1
        return None

    def put(self, key: CacheKey, result: Any) -> None:
        """Store a result, evicting the least recently used entry when full."""
        self._entries[key] = result
        self._entries.move_to_end(key)
        if len(self._entries) > self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            self.logger.debug(f"Cache full, evicted entry for '{evicted[0]}'")

    def invalidate(self, calculator: str) -> int:
        """
        Drop every entry belonging to one calculator.

        Returns:
            Number of entries removed
        """
        stale = [key for key in self._entries if key[0] == calculator]
        for key in stale:
            del self._entries[key]
        return len(stale)

    def clear(self) -> None:
        self._entries.clear()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: CacheKey) -> bool:
        return key in self._entries
