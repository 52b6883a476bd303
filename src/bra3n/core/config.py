"""
Application Configuration

Centralized settings management using Pydantic BaseSettings.
All values are loaded from environment variables or .env file.
"""

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings with environment variable binding.

    Required env vars (no defaults):
        POSTGRES_USER, POSTGRES_PASSWORD, POSTGRES_HOST, POSTGRES_DB

    Optional env vars:
        POSTGRES_PORT (5432), REDIS_HOST (redis), REDIS_PORT (6379),
        LOG_LEVEL (INFO), OPENAI_API_KEY (unset, 'mock' for dev),
        EMBEDDING_* / SEARCH_* / HYBRID_* tuning knobs (see below)

    The provider key is deliberately optional at startup: CRUD endpoints
    work without it, and embedding calls fail fast with ConfigurationError.
    """

    PROJECT_NAME: str = "Bra3n Search"

    # Database
    POSTGRES_USER: str
    POSTGRES_PASSWORD: str
    POSTGRES_HOST: str
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str

    # Redis (embedding cache)
    REDIS_HOST: str = "redis"
    REDIS_PORT: int = 6379
    EMBEDDING_CACHE_ENABLED: bool = True
    EMBEDDING_CACHE_TTL_SECONDS: int = Field(default=86400, ge=0)

    # Logging
    LOG_LEVEL: str = "INFO"

    # Embedding provider
    OPENAI_API_KEY: str | None = None
    EMBEDDING_MODEL: str = "text-embedding-3-small"
    EMBEDDING_DIMENSION: int = Field(default=1536, gt=0)
    EMBEDDING_TIMEOUT_SECONDS: float = Field(default=30.0, gt=0)

    # Batch embedding rate limit (token bucket)
    EMBEDDING_REQUESTS_PER_SECOND: float = Field(default=10.0, gt=0)
    EMBEDDING_BURST: int = Field(default=1, ge=1)

    # Search
    SEARCH_DEFAULT_LIMIT: int = Field(default=10, ge=1)
    SEARCH_MAX_LIMIT: int = Field(default=50, ge=1)
    HYBRID_VECTOR_WEIGHT: float = Field(default=0.7, ge=0)
    HYBRID_TEXT_WEIGHT: float = Field(default=0.3, ge=0)
    HYBRID_CANDIDATE_MULTIPLIER: int = Field(default=4, ge=1)
    SIMILAR_EXCLUDE_SOURCE: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",  # Silently ignore unknown env vars
    )

    @model_validator(mode="after")
    def _check_hybrid_weights(self) -> "Settings":
        if self.HYBRID_VECTOR_WEIGHT + self.HYBRID_TEXT_WEIGHT <= 0:
            raise ValueError("HYBRID_VECTOR_WEIGHT + HYBRID_TEXT_WEIGHT must be > 0")
        if self.SEARCH_DEFAULT_LIMIT > self.SEARCH_MAX_LIMIT:
            raise ValueError("SEARCH_DEFAULT_LIMIT must not exceed SEARCH_MAX_LIMIT")
        return self

    @property
    def DATABASE_URL(self) -> str:
        """Async PostgreSQL connection string using asyncpg driver."""
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    @property
    def REDIS_URL(self) -> str:
        """Redis connection string."""
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}"

    @property
    def mock_embeddings(self) -> bool:
        """True when OPENAI_API_KEY is set to the literal 'mock'."""
        return (self.OPENAI_API_KEY or "").lower() == "mock"


settings = Settings()  # type: ignore[call-arg]
