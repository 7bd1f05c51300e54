"""
Pytest configuration and fixtures.

Stores built here use a virtual clock and no expiration worker thread, so
tests fire scheduled expirations explicitly with ``run_pending()``.
"""

import os

import pytest

from datacache.utils.cache import CacheStore
from tests.mocks import FakeClock

CACHE_ENV_VARS = [
    'CACHE_DEFAULT_TTL',
    'CACHE_MAX_SIZE',
    'CACHE_EAGER_EXPIRY',
    'LOG_LEVEL',
    'ENVIRONMENT',
    'DEBUG_MODE'
]


@pytest.fixture
def clock():
    """A virtual clock starting at t=0."""
    return FakeClock()


@pytest.fixture
def store(clock):
    """A cache store on the virtual clock with the worker disabled."""
    cache = CacheStore(default_ttl=300, max_size=1000, clock=clock, eager_expiry=False)
    yield cache
    cache.close()


@pytest.fixture
def clean_env(monkeypatch):
    """
    Remove every cache-related environment variable for the test.

    Each variable is set then deleted so teardown restores its original
    state even if a .env file loaded during the test wrote it.
    """
    for var in CACHE_ENV_VARS:
        monkeypatch.setenv(var, "")
        monkeypatch.delenv(var)
    return monkeypatch
