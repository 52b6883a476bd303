"""
Embedding Service

Generates and stores note embeddings: one note at a time, as a FastAPI
background task, or as a rate-limited sequential batch.

Embedding is best effort. Failures are logged and reported as ``False``
(or counted in a batch result); the note write that triggered them is
never rolled back, and stale embeddings are tolerated until the next
regeneration.
"""

import logging
from collections.abc import Sequence
from functools import lru_cache
from typing import NamedTuple
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from bra3n.core.config import Settings, settings
from bra3n.core.database import AsyncSessionLocal
from bra3n.core.exceptions import Bra3nError, NoteNotFoundError
from bra3n.models import Note, content_digest
from bra3n.repositories.embeddings import EmbeddingRepository
from bra3n.repositories.notes import NoteRepository
from bra3n.schemas.embeddings import EmbeddingStats, ProjectEmbeddingStats
from bra3n.services.ai import EmbeddingProvider, get_embedding_provider
from bra3n.services.rate_limit import TokenBucket

logger = logging.getLogger(__name__)


class BatchResult(NamedTuple):
    """Return value of a batch run."""

    requested: int
    succeeded: int
    skipped: int
    failed_note_ids: list[UUID]


def _percentage(part: int, total: int) -> float:
    return round(100.0 * part / total, 1) if total else 0.0


class EmbeddingService:
    """
    Orchestrates provider calls and embedding persistence.

    Usage::

        service = EmbeddingService(provider)
        async with AsyncSessionLocal() as session:
            ok = await service.generate_embedding(session, note.id, text)
            result = await service.batch_generate(session, notes)
    """

    def __init__(
        self,
        provider: EmbeddingProvider,
        repository: EmbeddingRepository | None = None,
        notes: NoteRepository | None = None,
        *,
        config: Settings | None = None,
        limiter: TokenBucket | None = None,
    ) -> None:
        cfg = config or settings
        self._provider = provider
        self._repository = repository or EmbeddingRepository()
        self._notes = notes or NoteRepository()
        self._limiter = limiter or TokenBucket(
            cfg.EMBEDDING_REQUESTS_PER_SECOND, cfg.EMBEDDING_BURST
        )

    def ensure_configured(self) -> None:
        """Raise ConfigurationError when the provider cannot be used at all."""
        self._provider.ensure_configured()

    # ------------------------------------------------------------------
    # Single note
    # ------------------------------------------------------------------

    async def generate_embedding(
        self,
        session: AsyncSession,
        note_id: UUID,
        text: str,
    ) -> bool:
        """
        Embed ``text`` and upsert it as the embedding of ``note_id``.

        Blank text is a no-op. Returns True only when a vector was stored.
        """
        if not text.strip():
            logger.debug("Skipping embedding for note %s: empty text", note_id)
            return False

        try:
            vector = await self._provider.embed(text)
            await self._repository.upsert(
                session,
                note_id=note_id,
                embedding=vector,
                model=self._provider.model,
                content_hash=content_digest(text),
            )
        except Bra3nError as e:
            logger.error("Embedding generation failed for note %s: %s", note_id, e)
            return False
        except SQLAlchemyError:
            logger.exception("Could not store embedding for note %s", note_id)
            await session.rollback()
            return False

        logger.info("Embedding generated for note %s", note_id)
        return True

    async def regenerate(self, session: AsyncSession, note_id: UUID) -> bool:
        """Re-embed a stored note from its current text."""
        note = await self._notes.get_by_id(session, note_id)
        if note is None:
            raise NoteNotFoundError(note_id)
        return await self.generate_embedding(session, note.id, note.text_for_embedding)

    # ------------------------------------------------------------------
    # Batch
    # ------------------------------------------------------------------

    async def batch_generate(
        self,
        session: AsyncSession,
        notes: Sequence[Note],
    ) -> BatchResult:
        """
        Embed notes one after another, in the order given.

        Each provider call waits on the token bucket. A failed note is
        recorded and the batch moves on to the next one.

        Raises:
            ConfigurationError: Before any work, if the provider has no key.
        """
        self.ensure_configured()
        # Snapshot before the loop: a rollback would expire the ORM objects
        items = [(note.id, note.text_for_embedding) for note in notes]
        succeeded = 0
        skipped = 0
        failed: list[UUID] = []

        for note_id, text in items:
            if not text.strip():
                skipped += 1
                continue
            await self._limiter.acquire()
            if await self.generate_embedding(session, note_id, text):
                succeeded += 1
            else:
                failed.append(note_id)

        logger.info(
            "Generated embeddings for %d out of %d notes (%d skipped)",
            succeeded,
            len(items),
            skipped,
        )
        return BatchResult(
            requested=len(items),
            succeeded=succeeded,
            skipped=skipped,
            failed_note_ids=failed,
        )

    async def notes_needing_embedding(
        self,
        session: AsyncSession,
        project_id: str | None = None,
        limit: int = 100,
    ) -> Sequence[Note]:
        return await self._repository.notes_needing_embedding(
            session, project_id=project_id, limit=limit
        )

    # ------------------------------------------------------------------
    # Coverage
    # ------------------------------------------------------------------

    async def stats(
        self,
        session: AsyncSession,
        project_id: str | None = None,
    ) -> EmbeddingStats:
        """Embedding coverage overall and per project."""
        rows = await self._repository.coverage(session, project_id)
        breakdown = [
            ProjectEmbeddingStats(
                project_id=row.project_id,
                total_notes=row.total_notes,
                embedded_notes=row.embedded_notes,
                stale_embeddings=row.stale_embeddings,
                percentage=_percentage(row.embedded_notes, row.total_notes),
            )
            for row in rows
        ]
        total = sum(row.total_notes for row in rows)
        embedded = sum(row.embedded_notes for row in rows)
        return EmbeddingStats(
            total_notes=total,
            embedded_notes=embedded,
            stale_embeddings=sum(row.stale_embeddings for row in rows),
            embedding_percentage=_percentage(embedded, total),
            project_breakdown=breakdown,
        )


@lru_cache
def get_embedding_service() -> EmbeddingService:
    """FastAPI dependency / shared service built from global settings."""
    return EmbeddingService(get_embedding_provider())


async def process_note_embedding(
    note_id: UUID,
    service: EmbeddingService | None = None,
) -> bool:
    """
    Generate and store the embedding for a note (background task).

    Creates its own database session since FastAPI background tasks run
    after the HTTP response is sent and the request session is closed.

    Args:
        note_id: ID of the note to process.
        service: Service to use (defaults to the shared instance).

    Returns:
        True if the embedding was generated and stored.
    """
    service = service or get_embedding_service()
    async with AsyncSessionLocal() as session:
        try:
            return await service.regenerate(session, note_id)
        except NoteNotFoundError:
            logger.warning("Note %s not found for embedding processing", note_id)
            return False
        except SQLAlchemyError:
            logger.exception("Could not load note %s for embedding", note_id)
            return False
