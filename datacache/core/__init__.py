"""
Core module for datacache.

This module contains the core infrastructure components:
- Configuration management system
- Custom exception classes for error categorization
"""

from .config import ConfigManager
from .exceptions import (
    DataCacheError,
    ConfigurationError,
    ValidationError,
    CacheError,
    SerializationError
)

__all__ = [
    'ConfigManager',

    # Exception classes
    'DataCacheError',
    'ConfigurationError',
    'ValidationError',
    'CacheError',
    'SerializationError'
]
