"""Key/value store abstraction behind the completion cache.

Provides a pluggable store with in-memory and Redis implementations. The
store only moves bytes; expiry semantics live in the completion cache,
which checks the entry's own timestamp on every read.
"""

from abc import ABC, abstractmethod
import asyncio


class CompletionStore(ABC):
    """Abstract base class for completion stores.

    Lifecycle: one instance per process, created on first use through
    get_store() and closed in the application lifespan.
    """

    @abstractmethod
    async def get(self, key: str) -> bytes | None:
        """Retrieve a value, or None if the key was never written."""

    @abstractmethod
    async def set(self, key: str, value: bytes, ttl: int) -> None:
        """Store a value.

        Args:
            key: The cache key.
            value: The serialized entry.
            ttl: Lifetime hint in seconds. Backends with native expiry may
                use it as a storage-side bound; readers never rely on it.
        """

    async def close(self) -> None:
        """Release backend resources."""


class InMemoryStore(CompletionStore):
    """Process-local dictionary store.

    Entries are never evicted or purged; expired entries stay in memory
    and are treated as misses by the completion cache. Memory grows with
    the number of distinct fingerprints.
    """

    def __init__(self) -> None:
        self._data: dict[str, bytes] = {}
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> bytes | None:
        async with self._lock:
            return self._data.get(key)

    async def set(self, key: str, value: bytes, ttl: int) -> None:
        async with self._lock:
            self._data[key] = value

    def __len__(self) -> int:
        return len(self._data)


class RedisStore(CompletionStore):
    """Redis-backed store shared between service instances.

    Example:
        >>> store = RedisStore("redis://localhost:6379/0")
        >>> await store.set("key", b"value", ttl=300)
    """

    def __init__(self, redis_url: str) -> None:
        import redis.asyncio as aioredis

        self._redis_url = redis_url
        self._redis = None
        self._client_factory = aioredis.from_url

    def _get_client(self):
        if self._redis is None:
            self._redis = self._client_factory(self._redis_url)
        return self._redis

    async def get(self, key: str) -> bytes | None:
        return await self._get_client().get(key)

    async def set(self, key: str, value: bytes, ttl: int) -> None:
        await self._get_client().setex(key, ttl, value)

    async def close(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None


_store_instance: CompletionStore | None = None


def get_store(
    backend: str | None = None,
    redis_url: str | None = None,
    force_new: bool = False,
) -> CompletionStore:
    """Get or create the process-wide completion store.

    Args:
        backend: 'memory', 'redis', or None to follow settings.
        redis_url: Redis connection URL, defaults to settings.redis_url.
        force_new: Create a new instance even if one exists.
    """
    global _store_instance

    if _store_instance is not None and not force_new:
        return _store_instance

    from journal.app.core.config import settings

    backend = backend or settings.completion_cache_backend
    if backend == "redis":
        _store_instance = RedisStore(redis_url or settings.redis_url)
    else:
        _store_instance = InMemoryStore()
    return _store_instance


def reset_store() -> None:
    """Drop the process-wide store instance (used by tests)."""
    global _store_instance
    _store_instance = None
