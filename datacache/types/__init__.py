"""
Type definitions for datacache.
"""

from .models import LogLevel, CacheOperation, CacheConfig, CacheStats

__all__ = ['LogLevel', 'CacheOperation', 'CacheConfig', 'CacheStats']
