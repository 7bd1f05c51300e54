"""
JSON serialization for cached payloads.

Structured values are stored as JSON text so that what the cache hands
back is always a fresh object, never a live reference shared with the
caller that stored it.
"""

import hashlib
from typing import Any, Dict, Mapping, Optional, Union

import orjson

from ...core.exceptions import SerializationError


def encode_json(data: Mapping[str, Any], cache_key: Optional[str] = None) -> str:
    """
    Serialize a mapping to a JSON string.

    Args:
        data: Mapping with string keys and JSON-compatible values
        cache_key: Key being written, for error context

    Returns:
        JSON text

    Raises:
        SerializationError: If ``data`` is not a mapping or cannot be encoded
    """
    if not isinstance(data, Mapping):
        raise SerializationError(
            f"Expected a mapping, got {type(data).__name__}",
            cache_key=cache_key,
            operation="encode"
        )

    try:
        # orjson only serializes dict itself, not arbitrary Mapping types
        return orjson.dumps(dict(data)).decode('utf-8')
    except (TypeError, orjson.JSONEncodeError) as e:
        raise SerializationError(
            f"Failed to encode JSON: {str(e)}",
            cache_key=cache_key,
            operation="encode",
            original_error=e
        )


def decode_json(payload: Union[str, bytes], cache_key: Optional[str] = None) -> Dict[str, Any]:
    """
    Parse JSON text back into a dictionary.

    Args:
        payload: JSON text as ``str`` or UTF-8 ``bytes``
        cache_key: Key being read, for error context

    Returns:
        The decoded object

    Raises:
        SerializationError: If the payload is not text, is not valid JSON,
            or does not decode to a JSON object
    """
    if not isinstance(payload, (str, bytes, bytearray)):
        raise SerializationError(
            f"Expected JSON text, got {type(payload).__name__}",
            cache_key=cache_key,
            operation="decode"
        )

    try:
        data = orjson.loads(payload)
    except orjson.JSONDecodeError as e:
        raise SerializationError(
            f"Failed to decode JSON: {str(e)}",
            cache_key=cache_key,
            operation="decode",
            original_error=e
        )

    if not isinstance(data, dict):
        raise SerializationError(
            f"Expected a JSON object, got {type(data).__name__}",
            cache_key=cache_key,
            operation="decode"
        )

    return data


def calculate_json_hash(data: Mapping[str, Any]) -> str:
    """
    Calculate a deterministic hash of JSON data.

    Useful for building cache keys out of filter parameters whose
    iteration order is not fixed.

    Args:
        data: Mapping to hash

    Returns:
        Hex digest of the key-sorted serialization
    """
    serialized = orjson.dumps(dict(data), option=orjson.OPT_SORT_KEYS)
    return hashlib.md5(serialized).hexdigest()
