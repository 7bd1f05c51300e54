"""
Capacity eviction policies.

A policy only picks a victim; the cache performs the removal so the
entry table and the expiration handles stay consistent.
"""

from typing import Mapping, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .cache_manager import CacheEntry


class EvictionPolicy:
    """Base class for eviction policies."""

    name = "base"

    def select_victim(self, entries: Mapping[str, 'CacheEntry']) -> Optional[str]:
        """
        Choose the key to evict.

        Args:
            entries: Current entry table, in insertion order

        Returns:
            The key to evict, or None if ``entries`` is empty
        """
        raise NotImplementedError


class SoonestExpiryPolicy(EvictionPolicy):
    """
    Evict the entry that would expire naturally first.

    Access recency is not tracked, so this is not LRU. Ties go to the first
    entry in iteration order.
    """

    name = "soonest_expiry"

    def select_victim(self, entries: Mapping[str, 'CacheEntry']) -> Optional[str]:
        victim = None
        earliest = None

        for key, entry in entries.items():
            if earliest is None or entry.expires_at < earliest:
                earliest = entry.expires_at
                victim = key

        return victim
