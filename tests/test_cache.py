"""Tests for the completion store abstraction."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from journal.app.core.cache import (
    CompletionStore,
    InMemoryStore,
    RedisStore,
    get_store,
    reset_store,
)


class TestInMemoryStore:
    @pytest.mark.asyncio
    async def test_set_and_get(self):
        store = InMemoryStore()
        await store.set("key1", b"value1", ttl=60)
        assert await store.get("key1") == b"value1"

    @pytest.mark.asyncio
    async def test_get_nonexistent_key(self):
        assert await InMemoryStore().get("nonexistent") is None

    @pytest.mark.asyncio
    async def test_overwrite(self):
        store = InMemoryStore()
        await store.set("key1", b"old", ttl=60)
        await store.set("key1", b"new", ttl=60)
        assert await store.get("key1") == b"new"
        assert len(store) == 1

    @pytest.mark.asyncio
    async def test_ttl_is_not_enforced_by_store(self):
        # Expiry is judged by the completion cache from the entry timestamp.
        store = InMemoryStore()
        await store.set("key1", b"value1", ttl=1)
        assert await store.get("key1") == b"value1"


class TestRedisStore:
    def _store_with_fake_client(self):
        client = MagicMock()
        client.get = AsyncMock(return_value=b"cached")
        client.setex = AsyncMock()
        client.aclose = AsyncMock()
        store = RedisStore("redis://localhost:6379/0")
        store._client_factory = MagicMock(return_value=client)
        return store, client

    @pytest.mark.asyncio
    async def test_set_uses_setex_with_ttl(self):
        store, client = self._store_with_fake_client()
        await store.set("journal:key", b"value", ttl=300)
        client.setex.assert_awaited_once_with("journal:key", 300, b"value")

    @pytest.mark.asyncio
    async def test_get(self):
        store, client = self._store_with_fake_client()
        assert await store.get("journal:key") == b"cached"
        client.get.assert_awaited_once_with("journal:key")

    @pytest.mark.asyncio
    async def test_close_releases_client(self):
        store, client = self._store_with_fake_client()
        await store.get("journal:key")
        await store.close()
        client.aclose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_close_without_client_is_noop(self):
        store, client = self._store_with_fake_client()
        await store.close()
        client.aclose.assert_not_called()


class TestGetStore:
    def test_singleton(self):
        reset_store()
        first = get_store(backend="memory")
        assert get_store() is first
        assert isinstance(first, CompletionStore)

    def test_force_new(self):
        reset_store()
        first = get_store(backend="memory")
        second = get_store(backend="memory", force_new=True)
        assert first is not second

    def test_redis_backend(self):
        reset_store()
        store = get_store(backend="redis", redis_url="redis://cache:6379/1")
        assert isinstance(store, RedisStore)
        reset_store()
