"""
Example script showing how a data-access repository uses the cache.

One store is built at startup and passed to the repository; the repository
picks the keys, reads through the cache, and invalidates right after its
own writes.

Usage:
    python examples/repository_cache_example.py

Environment Variables:
    CACHE_DEFAULT_TTL: Default entry lifetime in seconds
    CACHE_MAX_SIZE: Maximum number of cached entries
    LOG_LEVEL: DEBUG shows every cache hit, put and removal
"""

from typing import Any, Dict, List, Optional

from datacache import CacheKeys, CacheStore, ConfigManager, configure_logging


class InMemoryPostsBackend:
    """Stand-in for a slow remote data source."""

    def __init__(self):
        self.reads = 0
        self._posts: Dict[str, Dict[str, Any]] = {}

    def fetch_post(self, post_id: str) -> Optional[Dict[str, Any]]:
        self.reads += 1
        return self._posts.get(post_id)

    def fetch_posts(self, post_type: str) -> List[Dict[str, Any]]:
        self.reads += 1
        return [p for p in self._posts.values() if p["type"] == post_type]

    def save_post(self, post: Dict[str, Any]) -> None:
        self._posts[post["id"]] = post


class PostsRepository:
    """Repository that caches reads and invalidates on writes."""

    def __init__(self, backend: InMemoryPostsBackend, cache: CacheStore):
        self._backend = backend
        self._cache = cache

    def get_post(self, post_id: str) -> Optional[Dict[str, Any]]:
        key = CacheKeys.post(post_id)
        cached = self._cache.get_json(key)
        if cached is not None:
            return cached

        post = self._backend.fetch_post(post_id)
        if post is not None:
            self._cache.put_json(key, post, ttl=60)
        return post

    def list_posts(self, post_type: str) -> List[Dict[str, Any]]:
        return self._cache.get_or_set(
            CacheKeys.posts_list(post_type),
            lambda: self._backend.fetch_posts(post_type),
            ttl=30
        )

    def save_post(self, post: Dict[str, Any]) -> None:
        self._backend.save_post(post)
        self._cache.remove(CacheKeys.post(post["id"]))
        self._cache.remove_by_pattern(CacheKeys.posts_lists_pattern(post["type"]))


def main():
    config = ConfigManager().load_config()
    configure_logging(config.log_level)

    with CacheStore.from_config(config) as cache:
        backend = InMemoryPostsBackend()
        repository = PostsRepository(backend, cache)

        repository.save_post({"id": "p1", "type": "casual", "title": "Hello"})
        repository.get_post("p1")
        repository.get_post("p1")
        repository.list_posts("casual")
        repository.list_posts("casual")

        repository.save_post({"id": "p1", "type": "casual", "title": "Hello again"})
        print(repository.get_post("p1"))

        print(f"Backend reads: {backend.reads}")
        print(f"Cache stats: {cache.stats().to_dict()}")


if __name__ == "__main__":
    main()
