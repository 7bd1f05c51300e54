"""
Structured logging on top of the standard ``logging`` module.

Messages carry key=value context so cache events stay greppable:

    [2026-01-01 12:00:00] [DEBUG] [datacache.cache] Cache put (key=post_1 ttl=300.0)
"""

import logging
from typing import Any, Dict, Optional, Union

from ...types.models import LogLevel

LOG_FORMAT = '[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

_LEVEL_MAP = {
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
    LogLevel.WARNING: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
    LogLevel.CRITICAL: logging.CRITICAL
}


def _coerce_level(level: Union[LogLevel, str]) -> LogLevel:
    if isinstance(level, LogLevel):
        return level
    try:
        return LogLevel[level.upper()]
    except KeyError:
        valid_levels = ", ".join([l.name for l in LogLevel])
        raise ValueError(f"Invalid log level: {level}. Valid levels are: {valid_levels}")


def configure_logging(level: Union[LogLevel, str] = LogLevel.INFO, name: str = "datacache") -> logging.Logger:
    """
    Attach a console handler to the package logger.

    Existing handlers on that logger are replaced so repeated calls do not
    duplicate output.

    Args:
        level: Log level (enum or name)
        name: Logger to configure

    Returns:
        The configured ``logging.Logger``
    """
    python_level = _LEVEL_MAP[_coerce_level(level)]

    root = logging.getLogger(name)
    root.setLevel(python_level)

    for handler in root.handlers[:]:
        root.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(python_level)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    root.addHandler(console_handler)

    return root


class StructuredLogger:
    """
    Logger that appends key=value context to every message.

    Attributes:
        name (str): Underlying ``logging`` logger name
        _context (Dict): Context included with every entry
    """

    def __init__(self, name: str, context: Optional[Dict[str, Any]] = None):
        self.name = name
        self._logger = logging.getLogger(name)
        self._context: Dict[str, Any] = dict(context or {})

    def with_context(self, **context: Any) -> 'StructuredLogger':
        """
        Create a logger bound to additional context.

        Args:
            **context: Context key-value pairs to bind

        Returns:
            New logger sharing the same underlying ``logging`` logger
        """
        merged = dict(self._context)
        merged.update(context)
        return StructuredLogger(self.name, merged)

    def is_enabled_for(self, level: Union[LogLevel, str]) -> bool:
        return self._logger.isEnabledFor(_LEVEL_MAP[_coerce_level(level)])

    def log(
        self,
        level: LogLevel,
        message: str,
        error: Optional[Union[str, Exception]] = None,
        **context: Any
    ) -> None:
        """
        Log a message with context.

        Args:
            level: Log level
            message: Log message
            error: Error message or exception (optional)
            **context: Additional context key-value pairs
        """
        python_level = _LEVEL_MAP[level]
        if not self._logger.isEnabledFor(python_level):
            return

        merged = dict(self._context)
        merged.update(context)
        if error is not None:
            merged['error'] = str(error)
            if isinstance(error, Exception):
                merged['error_type'] = type(error).__name__

        if merged:
            context_str = " ".join([f"{k}={v}" for k, v in merged.items()])
            message = f"{message} ({context_str})"

        self._logger.log(python_level, message)

    def debug(self, message: str, **context: Any) -> None:
        self.log(LogLevel.DEBUG, message, **context)

    def info(self, message: str, **context: Any) -> None:
        self.log(LogLevel.INFO, message, **context)

    def warning(self, message: str, **context: Any) -> None:
        self.log(LogLevel.WARNING, message, **context)

    def error(
        self,
        message: str,
        error: Optional[Union[str, Exception]] = None,
        **context: Any
    ) -> None:
        """
        Log an error message.

        Args:
            message: Log message
            error: Error message or exception (optional)
            **context: Additional context key-value pairs
        """
        self.log(LogLevel.ERROR, message, error=error, **context)
