"""
TTL-based cache store for data-access repositories.

This module provides a thread-safe, process-local cache in which every
entry carries its own time-to-live. Staleness is enforced twice: eagerly by
an ``ExpirationScheduler`` that removes entries once their TTL elapses, and
lazily by every read, which treats an entry past its deadline as a miss even
if the scheduled removal has not run yet.

The cache is an optimization layer. Malformed keys and unreadable payloads
degrade to a miss; they never raise.
"""

import math
import re
import threading
import time
from datetime import timedelta
from typing import Any, Callable, Dict, List, Mapping, Optional, Type, TypeVar, Union

from ...core.exceptions import CacheError, SerializationError, ValidationError
from ...types.models import CacheConfig, CacheOperation, CacheStats
from ..codec.json_utils import encode_json, decode_json
from ..logging.structured_logger import StructuredLogger
from .eviction import EvictionPolicy, SoonestExpiryPolicy
from .expiration import ExpirationScheduler

T = TypeVar('T')

TTL = Union[int, float, timedelta]

DEFAULT_TTL = 300.0  # 5 minutes
DEFAULT_MAX_SIZE = 1000

logger = StructuredLogger(__name__)


class CacheEntry:
    """
    Cached value with its expiration deadline.

    Entries are never mutated after creation; overwriting a key installs a
    new entry.

    Attributes:
        value: The cached value
        expires_at: Clock reading at which the entry becomes stale
        created_at: Clock reading at creation
    """

    __slots__ = ('value', 'expires_at', 'created_at')

    def __init__(self, value: Any, expires_at: float, created_at: float):
        self.value = value
        self.expires_at = expires_at
        self.created_at = created_at

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at

    def time_to_expiry(self, now: float) -> float:
        """Seconds until expiry (negative once expired)."""
        return self.expires_at - now


def _ttl_seconds(ttl: TTL) -> float:
    if isinstance(ttl, timedelta):
        seconds = ttl.total_seconds()
    elif isinstance(ttl, bool) or not isinstance(ttl, (int, float)):
        raise ValidationError(
            "TTL must be a number of seconds or a timedelta",
            field_name="ttl",
            expected_type="float | timedelta",
            actual_value=ttl
        )
    else:
        seconds = float(ttl)

    if math.isnan(seconds):
        raise ValidationError("TTL must not be NaN", field_name="ttl", expected_type="float", actual_value=ttl)

    # A deadline in the past is simply an entry that is already stale
    if seconds < 0:
        logger.debug("Negative TTL clamped to zero", ttl=seconds)
        return 0.0
    return seconds


class CacheStore:
    """
    Thread-safe TTL cache with bounded size.

    The entry table and the expiration handle table are guarded by one
    re-entrant lock, which the expiration worker takes as well. Every
    check-then-act sequence (lazy expiry, eviction, overwrite) runs inside a
    single critical section.

    Attributes:
        default_ttl (float): TTL in seconds used when ``put`` gets none
        max_size (int): Maximum number of entries held at once
        eviction_policy (EvictionPolicy): Chooses a victim when full
    """

    def __init__(
        self,
        default_ttl: TTL = DEFAULT_TTL,
        max_size: int = DEFAULT_MAX_SIZE,
        eviction_policy: Optional[EvictionPolicy] = None,
        clock: Callable[[], float] = time.monotonic,
        eager_expiry: bool = True
    ):
        """
        Initialize a new cache store.

        Args:
            default_ttl: Default time-to-live, in seconds or as a timedelta
            max_size: Maximum number of entries the cache can hold
            eviction_policy: Victim selection when full (soonest expiry by default)
            clock: Monotonic time source in seconds
            eager_expiry: Run the background expiration worker. When False,
                scheduled removals only happen through ``run_pending()``;
                reads still never return stale entries.

        Raises:
            ValidationError: If default_ttl or max_size is not positive
        """
        default_ttl = _ttl_seconds(default_ttl)
        if default_ttl <= 0:
            raise ValidationError(
                "Default TTL must be positive",
                field_name="default_ttl",
                expected_type="positive float",
                actual_value=default_ttl
            )
        if isinstance(max_size, bool) or not isinstance(max_size, int) or max_size <= 0:
            raise ValidationError(
                "Max size must be a positive integer",
                field_name="max_size",
                expected_type="positive int",
                actual_value=max_size
            )

        self.default_ttl = default_ttl
        self.max_size = max_size
        self.eviction_policy = eviction_policy or SoonestExpiryPolicy()

        self._clock = clock
        self._lock = threading.RLock()
        self._entries: Dict[str, CacheEntry] = {}
        self._stats = {
            'hits': 0,
            'misses': 0,
            'sets': 0,
            'evictions': 0,
            'expirations': 0,
            'invalidations': 0
        }
        self._scheduler = ExpirationScheduler(
            self._expire_entry,
            clock=clock,
            lock=self._lock,
            autostart=eager_expiry
        )

    @classmethod
    def from_config(cls, config: CacheConfig, **kwargs: Any) -> 'CacheStore':
        """
        Build a store from a validated configuration.

        Args:
            config: Cache configuration
            **kwargs: Extra constructor arguments (``clock``, ``eviction_policy``)
        """
        config.validate()
        return cls(
            default_ttl=config.default_ttl,
            max_size=config.max_size,
            eager_expiry=config.eager_expiry,
            **kwargs
        )

    @staticmethod
    def _is_valid_key(key: Any) -> bool:
        return isinstance(key, str) and key != ""

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def put(self, key: str, value: Any, ttl: Optional[TTL] = None) -> None:
        """
        Store a value.

        An empty key is ignored. When the cache is full one entry is evicted
        first. Any pending expiration for ``key`` is cancelled before the new
        one is scheduled.

        Args:
            key: Cache key
            value: Value to cache
            ttl: Time-to-live (uses default_ttl if None)

        Raises:
            ValidationError: If ttl is not a duration or is NaN
        """
        if not self._is_valid_key(key):
            logger.debug("Cache put ignored: invalid key", key=repr(key))
            return

        ttl_seconds = self.default_ttl if ttl is None else _ttl_seconds(ttl)

        with self._lock:
            if len(self._entries) >= self.max_size:
                self._evict_one()
            self._install(key, value, ttl_seconds)

        logger.debug("Cache put", operation=CacheOperation.SET.name, key=key, ttl=ttl_seconds)

    def _install(self, key: str, value: Any, ttl_seconds: float) -> CacheEntry:
        now = self._clock()
        entry = CacheEntry(value, now + ttl_seconds, now)

        self._scheduler.cancel(key)
        self._entries[key] = entry
        self._scheduler.schedule(key, ttl_seconds, entry)
        self._stats['sets'] += 1
        return entry

    def _evict_one(self) -> Optional[str]:
        victim = self.eviction_policy.select_victim(self._entries)
        if victim is None:
            return None

        self._discard(victim)
        self._stats['evictions'] += 1
        logger.debug(
            "Cache evicted",
            operation=CacheOperation.EVICT.name,
            key=victim,
            policy=self.eviction_policy.name
        )
        return victim

    def _discard(self, key: str) -> bool:
        self._scheduler.cancel(key)
        return self._entries.pop(key, None) is not None

    def _expire_entry(self, key: str, token: CacheEntry) -> None:
        # Only remove the entry this action was scheduled for
        with self._lock:
            if self._entries.get(key) is not token:
                return
            del self._entries[key]
            self._stats['expirations'] += 1

        logger.debug("Cache expired", operation=CacheOperation.EXPIRE.name, key=key)

    def refresh(self, key: str, ttl: Optional[TTL] = None) -> bool:
        """
        Restart the TTL of a live entry.

        Args:
            key: Cache key to refresh
            ttl: New TTL (uses default_ttl if None)

        Returns:
            True if the key was live and has been refreshed
        """
        if not self._is_valid_key(key):
            return False

        ttl_seconds = self.default_ttl if ttl is None else _ttl_seconds(ttl)

        with self._lock:
            entry = self._live_entry(key)
            if entry is None:
                return False
            self._install(key, entry.value, ttl_seconds)

        logger.debug("Cache refreshed", operation=CacheOperation.REFRESH.name, key=key, ttl=ttl_seconds)
        return True

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _live_entry(self, key: str) -> Optional[CacheEntry]:
        # Caller holds the lock. Stale entries are dropped on sight.
        entry = self._entries.get(key)
        if entry is None:
            return None

        if entry.is_expired(self._clock()):
            self._discard(key)
            self._stats['expirations'] += 1
            logger.debug("Cache entry stale on read", operation=CacheOperation.EXPIRE.name, key=key)
            return None

        return entry

    def get(self, key: str, expected_type: Optional[Type[T]] = None) -> Optional[T]:
        """
        Get a value from the cache.

        Args:
            key: Cache key to retrieve
            expected_type: When given, a value of any other type is treated
                as a miss instead of being returned

        Returns:
            Cached value, or None if the key is missing, expired or of the
            wrong type
        """
        if not self._is_valid_key(key):
            return None

        with self._lock:
            entry = self._live_entry(key)
            if entry is None:
                self._stats['misses'] += 1
                return None

            if expected_type is not None and not isinstance(entry.value, expected_type):
                self._stats['misses'] += 1
                logger.warning(
                    "Cache type mismatch",
                    operation=CacheOperation.GET.name,
                    key=key,
                    expected=expected_type.__name__,
                    actual=type(entry.value).__name__
                )
                return None

            self._stats['hits'] += 1
            value = entry.value

        logger.debug("Cache hit", operation=CacheOperation.GET.name, key=key)
        return value

    def contains(self, key: str) -> bool:
        """
        Check if a key is cached and not expired.

        A stale entry found here is removed, exactly as ``get`` would.
        """
        if not self._is_valid_key(key):
            return False

        with self._lock:
            return self._live_entry(key) is not None

    def __contains__(self, key: str) -> bool:
        return self.contains(key)

    def get_or_set(self, key: str, factory: Callable[[], T], ttl: Optional[TTL] = None) -> Optional[T]:
        """
        Get a value from cache or compute and store it if not present.

        The factory runs outside the lock. A ``None`` result is returned but
        not cached.

        Args:
            key: Cache key
            factory: Function computing the value on a miss
            ttl: Time-to-live (uses default_ttl if None)

        Returns:
            Cached or computed value
        """
        value = self.get(key)
        if value is not None:
            return value

        value = factory()
        if value is not None:
            self.put(key, value, ttl)
        return value

    # ------------------------------------------------------------------
    # Invalidation
    # ------------------------------------------------------------------

    def remove(self, key: str) -> bool:
        """
        Remove an entry and cancel its pending expiration.

        Returns:
            True if an entry was removed
        """
        if not self._is_valid_key(key):
            return False

        with self._lock:
            removed = self._discard(key)
            if removed:
                self._stats['invalidations'] += 1

        if removed:
            logger.debug("Cache removed", operation=CacheOperation.DELETE.name, key=key)
        return removed

    def remove_by_pattern(self, pattern: str) -> int:
        """
        Remove every entry whose key matches a regular expression.

        The pattern is searched anywhere in the key; anchor it with ``^``
        to match prefixes only.

        Args:
            pattern: Regular expression

        Returns:
            Number of entries removed

        Raises:
            CacheError: If the pattern is not a valid regular expression
        """
        try:
            regex = re.compile(pattern)
        except (re.error, TypeError) as e:
            raise CacheError(
                f"Invalid invalidation pattern: {str(e)}",
                cache_key=str(pattern),
                operation=CacheOperation.DELETE.name
            )

        with self._lock:
            keys_to_remove = [key for key in self._entries if regex.search(key)]
            for key in keys_to_remove:
                self._discard(key)
            self._stats['invalidations'] += len(keys_to_remove)

        logger.debug(
            "Cache removed by pattern",
            operation=CacheOperation.DELETE.name,
            pattern=pattern,
            count=len(keys_to_remove)
        )
        return len(keys_to_remove)

    def clear(self) -> int:
        """
        Remove all entries and cancel all pending expirations.

        Returns:
            Number of entries cleared
        """
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            self._scheduler.cancel_all()
            self._stats['invalidations'] += count

        logger.debug("Cache cleared", operation=CacheOperation.CLEAR.name, count=count)
        return count

    def evict_expired(self) -> int:
        """
        Sweep out every expired entry.

        Reads never return stale data regardless, so this is only needed
        to reclaim memory early.

        Returns:
            Number of entries removed
        """
        with self._lock:
            now = self._clock()
            expired_keys = [
                key for key, entry in self._entries.items()
                if entry.is_expired(now)
            ]
            for key in expired_keys:
                self._discard(key)
            self._stats['expirations'] += len(expired_keys)

        if expired_keys:
            logger.debug(
                "Cache evicted expired items",
                operation=CacheOperation.EXPIRE.name,
                count=len(expired_keys)
            )
        return len(expired_keys)

    def run_pending(self) -> int:
        """Fire every scheduled expiration that is due and return how many fired."""
        return self._scheduler.run_pending()

    # ------------------------------------------------------------------
    # JSON payloads
    # ------------------------------------------------------------------

    def put_json(self, key: str, data: Mapping[str, Any], ttl: Optional[TTL] = None) -> bool:
        """
        Serialize a mapping to JSON and cache the text.

        Serialization failures are logged and nothing is stored.

        Returns:
            True if the payload was stored
        """
        if not self._is_valid_key(key):
            return False

        try:
            payload = encode_json(data, cache_key=key)
        except SerializationError as e:
            logger.error("Failed to cache JSON data", error=e, key=key)
            return False

        self.put(key, payload, ttl)
        return True

    def get_json(self, key: str) -> Optional[Dict[str, Any]]:
        """
        Get and decode a JSON payload stored with ``put_json``.

        An entry that cannot be decoded to a JSON object is removed, so a
        corrupt payload is served at most once as a miss.

        Returns:
            A freshly decoded dictionary, or None
        """
        if not self._is_valid_key(key):
            return None

        with self._lock:
            payload = self.get(key)
            if payload is None:
                return None

            try:
                return decode_json(payload, cache_key=key)
            except SerializationError as e:
                logger.error("Failed to get JSON data from cache", error=e, key=key)
                self._discard(key)
                self._stats['invalidations'] += 1
                return None

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def stats(self) -> CacheStats:
        """
        Get a snapshot of the cache.

        Expired entries are counted, not removed.
        """
        with self._lock:
            now = self._clock()
            expired = sum(1 for entry in self._entries.values() if entry.is_expired(now))
            size = len(self._entries)

            return CacheStats(
                size=size,
                active=size - expired,
                expired=expired,
                max_size=self.max_size,
                hits=self._stats['hits'],
                misses=self._stats['misses'],
                evictions=self._stats['evictions'],
                expirations=self._stats['expirations'],
                invalidations=self._stats['invalidations']
            )

    def keys(self) -> List[str]:
        """Snapshot of all keys currently held, including not-yet-removed stale ones."""
        with self._lock:
            return list(self._entries.keys())

    def size(self) -> int:
        with self._lock:
            return len(self._entries)

    def __len__(self) -> int:
        return self.size()

    def get_key_info(self, key: str) -> Optional[Dict[str, Any]]:
        """
        Get detailed information about a cache key without touching it.

        Returns:
            Dictionary with key information, or None if key not found
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None

            now = self._clock()
            handle = self._scheduler.get_handle(key)
            return {
                'key': key,
                'age_seconds': now - entry.created_at,
                'ttl_remaining': max(0.0, entry.time_to_expiry(now)),
                'is_expired': entry.is_expired(now),
                'expiration_pending': handle is not None
            }

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Stop the expiration worker and drop every entry."""
        self._scheduler.shutdown()
        with self._lock:
            self._entries.clear()

    def __enter__(self) -> 'CacheStore':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"CacheStore(size={len(self._entries)}, max_size={self.max_size}, default_ttl={self.default_ttl})"
