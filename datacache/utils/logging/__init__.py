"""
Structured logging helpers.

This module provides context-carrying loggers and console setup for the
datacache package.
"""

from .structured_logger import StructuredLogger, configure_logging

__all__ = [
    'StructuredLogger',
    'configure_logging'
]
