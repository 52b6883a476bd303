"""
Embedding Cache Unit Tests

Redis client is mocked; verifies key layout and best-effort failure handling.
"""

import json
from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from bra3n.services.cache import EmbeddingCache


def test_key_is_model_scoped_digest():
    key = EmbeddingCache.key("text-embedding-3-small", "hello")

    assert key.startswith("bra3n:embedding:text-embedding-3-small:")
    assert len(key.rsplit(":", 1)[1]) == 64
    assert key != EmbeddingCache.key("other-model", "hello")


@pytest.mark.asyncio
async def test_get_returns_cached_vector():
    client = AsyncMock()
    client.get.return_value = json.dumps([0.1, 0.2])
    cache = EmbeddingCache(client)

    assert await cache.get("m", "hello") == [0.1, 0.2]


@pytest.mark.asyncio
async def test_set_uses_ttl():
    client = AsyncMock()
    cache = EmbeddingCache(client, ttl_seconds=60)

    await cache.set("m", "hello", [0.5])

    client.set.assert_awaited_once_with(EmbeddingCache.key("m", "hello"), "[0.5]", ex=60)


@pytest.mark.asyncio
async def test_redis_failures_are_misses():
    client = AsyncMock()
    client.get.side_effect = RedisConnectionError("down")
    client.set.side_effect = RedisConnectionError("down")
    client.ping.side_effect = RedisConnectionError("down")
    cache = EmbeddingCache(client)

    assert await cache.get("m", "hello") is None
    await cache.set("m", "hello", [0.1])  # must not raise
    assert await cache.ping() is False


@pytest.mark.asyncio
async def test_malformed_entry_is_a_miss():
    client = AsyncMock()
    client.get.return_value = "not json"
    cache = EmbeddingCache(client)

    assert await cache.get("m", "hello") is None
