"""
datacache - process-local TTL cache for data-access repositories.

Construct one ``CacheStore`` at startup and pass it to every repository
that needs it:

    config = ConfigManager().load_config()
    configure_logging(config.log_level)
    cache = CacheStore.from_config(config)
"""

from .core import (
    ConfigManager,
    DataCacheError,
    ConfigurationError,
    ValidationError,
    CacheError,
    SerializationError
)
from .types import CacheConfig, CacheStats, CacheOperation, LogLevel
from .utils.cache import (
    CacheStore,
    CacheEntry,
    CacheKeys,
    EvictionPolicy,
    SoonestExpiryPolicy,
    ExpirationScheduler
)
from .utils.codec import encode_json, decode_json
from .utils.logging import StructuredLogger, configure_logging

__version__ = "1.0.0"

__all__ = [
    'CacheStore',
    'CacheEntry',
    'CacheKeys',
    'EvictionPolicy',
    'SoonestExpiryPolicy',
    'ExpirationScheduler',
    'CacheConfig',
    'CacheStats',
    'CacheOperation',
    'LogLevel',
    'ConfigManager',
    'DataCacheError',
    'ConfigurationError',
    'ValidationError',
    'CacheError',
    'SerializationError',
    'encode_json',
    'decode_json',
    'StructuredLogger',
    'configure_logging'
]
