"""
Bra3n Search Application

FastAPI application entrypoint with async lifespan management.
Handles startup checks (database, embedding cache) and graceful shutdown.

Start locally:
    uvicorn bra3n.main:app --host 0.0.0.0 --port 8000 --reload
"""

import asyncio
import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from bra3n.api.v1.notes import router as notes_router
from bra3n.api.v1.search import router as search_router
from bra3n.core.config import settings
from bra3n.core.database import dispose_engine, engine
from bra3n.core.logging import setup_logging
from bra3n.services.ai import get_embedding_cache

# Initialize logging before any log statements
setup_logging()
logger = logging.getLogger(__name__)


async def wait_for_db(retries: int = 10, delay: int = 1) -> bool:
    """
    Wait for PostgreSQL to become available.

    Useful in containerized environments where the database may start
    after the application.

    Args:
        retries: Maximum connection attempts.
        delay: Seconds between attempts.

    Returns:
        True if connection established, False if all retries exhausted.
    """
    for i in range(retries):
        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            logger.info("Postgres connection established")
            return True
        except (SQLAlchemyError, OSError) as e:
            logger.warning("Waiting for Postgres (%d/%d)... Error: %s", i + 1, retries, e)
            await asyncio.sleep(delay)
    return False


async def check_cache() -> bool:
    """
    Verify embedding cache connectivity.

    Non-blocking check: the application runs without the cache if Redis
    is unavailable.
    """
    cache = get_embedding_cache()
    if cache is None:
        logger.info("Embedding cache disabled")
        return False
    if await cache.ping():
        logger.info("Redis connection established (%s)", settings.REDIS_HOST)
        return True
    return False


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
        - Validates database connectivity (required, blocks startup on failure)
        - Checks the embedding cache (optional, logs warning if unavailable)
        - Warns when no embedding provider key is configured

    Shutdown:
        - Closes the cache client and disposes the database engine
    """
    logger.info("Starting Bra3n Search...")
    logger.info("Log Level: %s", settings.LOG_LEVEL)

    if not await wait_for_db():
        logger.critical("Could not connect to Postgres. Shutting down.")
        raise RuntimeError("Database connection failed")

    if settings.EMBEDDING_CACHE_ENABLED and not await check_cache():
        logger.warning("Redis not reachable - continuing without embedding cache")

    if not settings.OPENAI_API_KEY:
        logger.warning("OPENAI_API_KEY is not set - embedding and search will fail")
    elif settings.mock_embeddings:
        logger.info("Using mock embeddings")

    yield  # Application runs here

    logger.info("Shutting down Bra3n Search...")
    cache = get_embedding_cache()
    if cache is not None:
        await cache.close()
    await dispose_engine()


app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Semantic and hybrid search over project notes.",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(notes_router, prefix="/api/v1/notes", tags=["Notes"])
app.include_router(search_router, prefix="/api/v1/search", tags=["Search"])


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint for load balancers and orchestrators."""
    return {
        "status": "ok",
        "service": "bra3n-search",
        "environment": os.getenv("ENVIRONMENT", "unknown"),
    }
