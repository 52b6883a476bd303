"""
Embedding Cache

Redis-backed cache of embedding vectors keyed by model + text digest.
Best effort: any Redis failure is logged and treated as a miss, so the
provider call path never depends on Redis availability.
"""

from __future__ import annotations

import hashlib
import json
import logging

import redis.asyncio as redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

KEY_PREFIX = "bra3n:embedding"


class EmbeddingCache:
    """
    Async embedding cache.

    Usage::

        cache = EmbeddingCache.from_url("redis://redis:6379", ttl_seconds=3600)
        vector = await cache.get("text-embedding-3-small", "hello")
        if vector is None:
            ...
            await cache.set("text-embedding-3-small", "hello", vector)
    """

    def __init__(self, client: redis.Redis, ttl_seconds: int = 86400) -> None:
        self._client = client
        self._ttl = ttl_seconds

    @classmethod
    def from_url(cls, url: str, ttl_seconds: int = 86400) -> EmbeddingCache:
        """Build a cache on a lazily-connecting Redis client."""
        return cls(redis.from_url(url, decode_responses=True), ttl_seconds)

    @staticmethod
    def key(model: str, text: str) -> str:
        digest = hashlib.sha256(text.encode("utf-8")).hexdigest()
        return f"{KEY_PREFIX}:{model}:{digest}"

    async def get(self, model: str, text: str) -> list[float] | None:
        """Return the cached vector, or None on miss or Redis failure."""
        try:
            raw = await self._client.get(self.key(model, text))
        except RedisError as e:
            logger.warning("Embedding cache read failed: %s", e)
            return None
        if raw is None:
            return None
        try:
            return [float(v) for v in json.loads(raw)]
        except (TypeError, ValueError):
            logger.warning("Discarding malformed cache entry for model %s", model)
            return None

    async def set(self, model: str, text: str, vector: list[float]) -> None:
        """Store a vector. Failures are logged, never raised."""
        try:
            await self._client.set(
                self.key(model, text),
                json.dumps(vector),
                ex=self._ttl or None,
            )
        except RedisError as e:
            logger.warning("Embedding cache write failed: %s", e)

    async def ping(self) -> bool:
        try:
            return bool(await self._client.ping())
        except RedisError as e:
            logger.error("Redis connection error: %s", e)
            return False

    async def close(self) -> None:
        await self._client.aclose()
