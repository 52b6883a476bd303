"""
AI Service

OpenAI integration for generating text embeddings.
Supports a deterministic mock mode for local development without API costs.
"""

from __future__ import annotations

import hashlib
import logging
import math
import random
from functools import lru_cache

import openai
from openai import AsyncOpenAI

from bra3n.core.config import Settings, settings
from bra3n.core.exceptions import (
    ConfigurationError,
    EmbeddingProviderError,
    SearchValidationError,
)
from bra3n.services.cache import EmbeddingCache

logger = logging.getLogger(__name__)


def mock_embedding(text: str, dimension: int) -> list[float]:
    """
    Deterministic pseudo-embedding for dev/test.

    Seeded from the SHA-256 of the text, so identical text always maps to
    the identical unit vector and search ordering is reproducible.
    """
    seed = int.from_bytes(hashlib.sha256(text.encode("utf-8")).digest()[:8], "big")
    rng = random.Random(seed)
    vector = [rng.uniform(-1.0, 1.0) for _ in range(dimension)]
    norm = math.sqrt(sum(v * v for v in vector)) or 1.0
    return [v / norm for v in vector]


class EmbeddingProvider:
    """
    Embedding provider backed by the OpenAI embeddings API.

    Uses ``EMBEDDING_MODEL`` (text-embedding-3-small by default). When
    OPENAI_API_KEY is the literal 'mock', vectors come from
    ``mock_embedding`` and no network call is made. A missing key raises
    ConfigurationError on first use, before any request is sent.

    The client is built with ``max_retries=0``: failures surface once and
    retrying is left to the caller.
    """

    def __init__(
        self,
        config: Settings | None = None,
        cache: EmbeddingCache | None = None,
        client: AsyncOpenAI | None = None,
    ) -> None:
        self._settings = config or settings
        self._cache = cache
        self._client = client

    @property
    def model(self) -> str:
        return self._settings.EMBEDDING_MODEL

    @property
    def dimension(self) -> int:
        return self._settings.EMBEDDING_DIMENSION

    def ensure_configured(self) -> None:
        """Raise ConfigurationError unless a key (or mock mode) is configured."""
        if self._client is None and not self._settings.OPENAI_API_KEY:
            raise ConfigurationError("OPENAI_API_KEY is not configured")

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            self.ensure_configured()
            self._client = AsyncOpenAI(
                api_key=self._settings.OPENAI_API_KEY,
                timeout=self._settings.EMBEDDING_TIMEOUT_SECONDS,
                max_retries=0,
            )
        return self._client

    async def embed(self, text: str) -> list[float]:
        """
        Generate a vector embedding for the given text.

        Args:
            text: Input text to embed.

        Returns:
            Embedding vector of length ``EMBEDDING_DIMENSION``.

        Raises:
            SearchValidationError: If the text is blank.
            ConfigurationError: If no API key is configured.
            EmbeddingProviderError: On API failure or a malformed response.
        """
        text = text.replace("\n", " ")  # OpenAI recommends single-line input
        if not text.strip():
            raise SearchValidationError("Cannot embed empty text")

        if self._settings.mock_embeddings:
            return mock_embedding(text, self.dimension)

        client = self._get_client()

        if self._cache is not None:
            cached = await self._cache.get(self.model, text)
            if cached is not None and len(cached) == self.dimension:
                return cached

        try:
            response = await client.embeddings.create(input=[text], model=self.model)
        except openai.OpenAIError as e:
            logger.error("OpenAI embedding request failed (%s): %s", type(e).__name__, e)
            raise EmbeddingProviderError(
                f"Embedding request failed: {type(e).__name__}"
            ) from e

        try:
            vector = list(response.data[0].embedding)
        except (AttributeError, IndexError, TypeError) as e:
            raise EmbeddingProviderError("Malformed embedding response") from e

        if len(vector) != self.dimension:
            raise EmbeddingProviderError(
                f"Embedding size {len(vector)} does not match expected {self.dimension}"
            )

        if self._cache is not None:
            await self._cache.set(self.model, text, vector)
        return vector


@lru_cache
def get_embedding_cache() -> EmbeddingCache | None:
    """Shared cache instance, or None when caching is disabled."""
    if not settings.EMBEDDING_CACHE_ENABLED:
        return None
    return EmbeddingCache.from_url(
        settings.REDIS_URL, ttl_seconds=settings.EMBEDDING_CACHE_TTL_SECONDS
    )


@lru_cache
def get_embedding_provider() -> EmbeddingProvider:
    """FastAPI dependency / shared provider built from global settings."""
    return EmbeddingProvider(settings, cache=get_embedding_cache())
