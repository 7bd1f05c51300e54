"""
Cache utilities for repository data.

This module provides the TTL cache store together with its expiration
scheduler, eviction policies and key builders.
"""

from .cache_manager import CacheStore, CacheEntry, DEFAULT_TTL, DEFAULT_MAX_SIZE
from .eviction import EvictionPolicy, SoonestExpiryPolicy
from .expiration import ExpirationScheduler, ExpirationHandle
from .keys import CacheKeys

__all__ = [
    'CacheStore',
    'CacheEntry',
    'DEFAULT_TTL',
    'DEFAULT_MAX_SIZE',
    'EvictionPolicy',
    'SoonestExpiryPolicy',
    'ExpirationScheduler',
    'ExpirationHandle',
    'CacheKeys'
]
