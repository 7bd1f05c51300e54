"""
Payload codecs for cached values.
"""

from .json_utils import encode_json, decode_json, calculate_json_hash

__all__ = ['encode_json', 'decode_json', 'calculate_json_hash']
