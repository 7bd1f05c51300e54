"""
Custom exception classes for cache error categorization.

This module defines the exception hierarchy used by the datacache package.
Each exception carries a machine-readable error code and a context mapping
so failures can be logged with enough detail to debug them later.

Note that the cache itself degrades to a miss rather than raising for
malformed keys or corrupt payloads; these classes cover construction and
configuration problems and the few programming errors surfaced to callers.
"""

from typing import Optional, Any, Dict


class DataCacheError(Exception):
    """
    Base exception class for all datacache errors.

    Attributes:
        message (str): Human-readable error message
        error_code (str): Machine-readable error code for categorization
        context (Dict[str, Any]): Additional context information
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__.upper()
        self.context = context or {}

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging."""
        return {
            'error_type': self.__class__.__name__,
            'error_code': self.error_code,
            'message': self.message,
            'context': self.context
        }


class ConfigurationError(DataCacheError):
    """
    Raised when cache configuration cannot be loaded or is invalid.

    The error keeps the offending environment variables so a troubleshooting
    message can point at exactly what needs fixing.
    """

    def __init__(
        self,
        message: str,
        invalid_values: Optional[Dict[str, Any]] = None,
        validation_errors: Optional[list] = None,
        env_file_path: Optional[str] = None
    ):
        context = {}
        if invalid_values:
            context['invalid_values'] = invalid_values
        if validation_errors:
            context['validation_errors'] = validation_errors
        if env_file_path:
            context['env_file_path'] = env_file_path

        super().__init__(message, "CONFIG_ERROR", context)
        self.invalid_values = invalid_values or {}
        self.validation_errors = validation_errors or []
        self.env_file_path = env_file_path

    def get_troubleshooting_message(self) -> str:
        """
        Get a detailed troubleshooting message for this configuration error.

        Returns:
            str: Formatted message with guidance on how to fix the issue
        """
        message = [f"Configuration Error: {self.message}"]

        if self.invalid_values:
            message.append("\nInvalid environment variable values:")
            for key, value in self.invalid_values.items():
                message.append(f"  - {key}: {value}")
            message.append("\nPlease check the data types and formats of these variables.")

        if self.validation_errors:
            message.append("\nConfiguration validation errors:")
            for error in self.validation_errors:
                message.append(f"  - {error}")

        if self.env_file_path:
            message.append(f"\nEnvironment file path: {self.env_file_path}")

        return "\n".join(message)


class ValidationError(DataCacheError):
    """
    Raised when a TTL or a store limit cannot be used.

    Non-numeric and NaN TTLs end up here, as do a non-positive default TTL
    and a max_size that is not a positive integer. ``field_name`` names the
    offending argument.
    """

    def __init__(
        self,
        message: str,
        field_name: Optional[str] = None,
        expected_type: Optional[str] = None,
        actual_value: Optional[Any] = None
    ):
        context = {}
        if field_name:
            context['field_name'] = field_name
        if expected_type:
            context['expected_type'] = expected_type
        if actual_value is not None:
            context['actual_value'] = str(actual_value)
            context['actual_type'] = type(actual_value).__name__

        super().__init__(message, "VALIDATION_ERROR", context)
        self.field_name = field_name
        self.expected_type = expected_type
        self.actual_value = actual_value


class CacheError(DataCacheError):
    """
    Raised when a cache operation is called incorrectly.

    Currently only an unparseable invalidation pattern ends up here.
    """

    def __init__(
        self,
        message: str,
        cache_key: Optional[str] = None,
        operation: Optional[str] = None
    ):
        context = {}
        if cache_key:
            context['cache_key'] = cache_key
        if operation:
            context['operation'] = operation

        super().__init__(message, "CACHE_ERROR", context)
        self.cache_key = cache_key
        self.operation = operation


class SerializationError(DataCacheError):
    """
    Raised when a payload cannot be encoded to or decoded from JSON.

    The cache facade catches this and turns it into a logged miss.
    """

    def __init__(
        self,
        message: str,
        cache_key: Optional[str] = None,
        operation: Optional[str] = None,
        original_error: Optional[Exception] = None
    ):
        context = {}
        if cache_key:
            context['cache_key'] = cache_key
        if operation:
            context['operation'] = operation
        if original_error:
            context['original_error'] = str(original_error)
            context['original_error_type'] = type(original_error).__name__

        super().__init__(message, "SERIALIZATION_ERROR", context)
        self.cache_key = cache_key
        self.operation = operation
        self.original_error = original_error
