"""
Cache key builders for data-access repositories.

Keys encode the query shape so that two reads with the same parameters hit
the same entry. The ``*_PATTERN`` helpers produce regular expressions for
``CacheStore.remove_by_pattern`` after writes that make reads stale.
"""

import re
from typing import Optional


class CacheKeys:
    """Deterministic key strings for posts, profiles and users."""

    # Posts
    @staticmethod
    def posts_list(post_type: str, municipality: Optional[str] = None) -> str:
        return f"posts_{post_type}_{municipality or 'all'}"

    @staticmethod
    def post(post_id: str) -> str:
        return f"post_{post_id}"

    @staticmethod
    def user_posts(user_id: str) -> str:
        return f"user_posts_{user_id}"

    @staticmethod
    def post_comments(post_id: str) -> str:
        return f"post_comments_{post_id}"

    # Profiles
    @staticmethod
    def user_profile(user_id: str) -> str:
        return f"user_profile_{user_id}"

    @staticmethod
    def user_preferences(user_id: str) -> str:
        return f"user_preferences_{user_id}"

    @staticmethod
    def user_stats(user_id: str) -> str:
        return f"user_stats_{user_id}"

    # Search
    @staticmethod
    def search_users(query: str) -> str:
        return f"search_users_{query.lower()}"

    # Aggregates
    POST_STATS = "post_stats"
    GLOBAL_USER_STATS = "global_user_stats"

    # Invalidation patterns
    @staticmethod
    def posts_lists_pattern(post_type: Optional[str] = None) -> str:
        """Every cached posts list, or only lists of ``post_type``."""
        if post_type is None:
            return r"^posts_"
        return rf"^posts_{re.escape(post_type)}_"

    @staticmethod
    def user_pattern(user_id: str) -> str:
        """Every per-user entry (posts, profile, preferences, stats) for ``user_id``."""
        return rf"^user_(posts|profile|preferences|stats)_{re.escape(user_id)}$"
