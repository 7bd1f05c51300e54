"""
Data models and type definitions for datacache.

This module defines the configuration, statistics and enum types shared by
the cache engine, the configuration loader and the logging helpers.
"""

from dataclasses import dataclass, field, asdict
from enum import Enum, auto
from typing import Dict, Any


class LogLevel(Enum):
    """Logging levels for structured logging."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class CacheOperation(Enum):
    """Types of cache operations that can be performed."""
    GET = auto()
    SET = auto()
    DELETE = auto()
    CLEAR = auto()
    REFRESH = auto()
    EXPIRE = auto()
    EVICT = auto()


@dataclass
class CacheConfig:
    """
    Type-safe configuration for a cache instance.

    Values normally come from environment variables through
    ``ConfigManager``; the defaults match a small client-side cache.
    """
    default_ttl: float = 300.0  # 5 minutes
    max_size: int = 1000
    eager_expiry: bool = True
    log_level: str = "INFO"

    # Environment-specific settings
    environment: str = "development"  # development, testing, production
    debug_mode: bool = False

    def validate(self) -> None:
        """
        Validate configuration values.

        Raises:
            ValueError: If any configuration value is invalid
        """
        if isinstance(self.default_ttl, bool) or not isinstance(self.default_ttl, (int, float)):
            raise ValueError(f"default_ttl must be a number, got {type(self.default_ttl).__name__}")
        if self.default_ttl <= 0:
            raise ValueError("default_ttl must be positive")

        if isinstance(self.max_size, bool) or not isinstance(self.max_size, int):
            raise ValueError(f"max_size must be an integer, got {type(self.max_size).__name__}")
        if self.max_size <= 0:
            raise ValueError("max_size must be positive")

        if not isinstance(self.eager_expiry, bool):
            raise ValueError(f"eager_expiry must be a boolean, got {type(self.eager_expiry).__name__}")

        valid_log_levels = [level.value for level in LogLevel]
        if self.log_level not in valid_log_levels:
            raise ValueError(f"log_level must be one of {valid_log_levels}")

        valid_environments = ["development", "testing", "production"]
        if self.environment not in valid_environments:
            raise ValueError(f"environment must be one of {valid_environments}")

        if not isinstance(self.debug_mode, bool):
            raise ValueError(f"debug_mode must be a boolean, got {type(self.debug_mode).__name__}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary for serialization."""
        return asdict(self)

    def get_environment_specific_defaults(self) -> Dict[str, Any]:
        """Get environment-specific default values."""
        defaults = {}

        if self.environment == "development":
            defaults.update({
                "debug_mode": True,
                "log_level": "DEBUG"
            })
        elif self.environment == "testing":
            # Tests drive expiry by hand through run_pending()
            defaults.update({
                "debug_mode": True,
                "log_level": "DEBUG",
                "eager_expiry": False
            })
        elif self.environment == "production":
            defaults.update({
                "debug_mode": False,
                "log_level": "INFO"
            })

        return defaults


@dataclass
class CacheStats:
    """
    Point-in-time snapshot of a cache.

    ``size``, ``active`` and ``expired`` are computed by scanning entries
    against the clock; the remaining fields are lifetime counters.
    """
    size: int
    active: int
    expired: int
    max_size: int
    hits: int = 0
    misses: int = 0
    evictions: int = 0
    expirations: int = 0
    invalidations: int = 0
    hit_rate: float = field(init=False)

    def __post_init__(self):
        """Calculate hit rate after initialization."""
        total_requests = self.hits + self.misses
        self.hit_rate = self.hits / total_requests if total_requests > 0 else 0.0

    def to_dict(self) -> Dict[str, Any]:
        """Convert the snapshot to a plain dictionary."""
        return asdict(self)
