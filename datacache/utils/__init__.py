"""
Utility modules for datacache.

This package provides:
- The TTL cache store with eager and lazy expiry
- JSON payload encoding
- Structured logging helpers
"""

from .cache import *
from .codec import *
from .logging import *
