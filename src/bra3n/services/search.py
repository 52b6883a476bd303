"""
Search Service

Single entry point for note search:

    query text → EmbeddingProvider → EmbeddingRepository → ranking → results

Two modes: ``semantic`` (cosine similarity) and ``hybrid`` (similarity
fused with full-text rank). ``find_similar`` runs the semantic path with
a query derived from an existing note.

The facade fails soft: provider, configuration and storage errors are
logged and returned as an error record on an empty ``SearchResponse``.
Only an unknown note id (``NoteNotFoundError``) is raised.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from bra3n.core.config import Settings, settings
from bra3n.core.exceptions import Bra3nError, NoteNotFoundError
from bra3n.repositories.embeddings import EmbeddingRepository
from bra3n.repositories.notes import NoteRepository
from bra3n.schemas.search import SearchError, SearchMode, SearchResponse, SearchResult
from bra3n.services.ai import EmbeddingProvider, get_embedding_provider
from bra3n.services.ranking import rank_hybrid, rank_semantic

logger = logging.getLogger(__name__)

# Generic user-facing messages; details stay in the logs
ERROR_MESSAGES: dict[str, str] = {
    "configuration": "Search is not configured. Please contact an administrator.",
    "provider": "The embedding service is unavailable. Please try again.",
    "validation": "The search request is invalid.",
    "store": "Search failed due to an internal error. Please try again.",
    "internal": "Search failed due to an internal error. Please try again.",
}


class SearchService:
    """
    Search facade over the embedding provider and the embedding store.

    Usage::

        service = SearchService(provider)
        response = await service.search(
            session, "project status update", project_id="proj-123", limit=5
        )
        if response.error:
            notify(response.error.message)
    """

    def __init__(
        self,
        provider: EmbeddingProvider,
        repository: EmbeddingRepository | None = None,
        notes: NoteRepository | None = None,
        *,
        config: Settings | None = None,
    ) -> None:
        self._settings = config or settings
        self._provider = provider
        self._repository = repository or EmbeddingRepository()
        self._notes = notes or NoteRepository()

    def _clamp_limit(self, limit: int | None) -> int:
        if limit is None:
            return self._settings.SEARCH_DEFAULT_LIMIT
        return max(1, min(limit, self._settings.SEARCH_MAX_LIMIT))

    @staticmethod
    def _failed(query: str, mode: SearchMode, kind: str) -> SearchResponse:
        return SearchResponse(
            query=query,
            mode=mode,
            error=SearchError(kind=kind, message=ERROR_MESSAGES[kind]),
        )

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    async def search(
        self,
        session: AsyncSession,
        query: str,
        *,
        project_id: str | None = None,
        mode: SearchMode | str = SearchMode.SEMANTIC,
        text_query: str = "",
        limit: int | None = None,
        exclude_note_id: UUID | None = None,
    ) -> SearchResponse:
        """
        Rank notes against a natural-language query.

        Args:
            session: Active async database session.
            query: Query text. Blank → empty response, no I/O.
            project_id: Restrict results to one project.
            mode: ``semantic`` or ``hybrid``.
            text_query: Lexical query for hybrid mode. Blank → semantic ranking.
            limit: Maximum results (server default when None, clamped to max).
            exclude_note_id: Note to leave out of the results.

        Returns:
            SearchResponse ordered by descending score. On failure the
            result list is empty and ``error`` is set.
        """
        try:
            mode = SearchMode(mode)
        except ValueError:
            logger.warning("Search rejected: unknown mode %r", mode)
            return self._failed(query, SearchMode.SEMANTIC, "validation")

        if not query or not query.strip():
            return SearchResponse(query=query, mode=mode)

        limit = self._clamp_limit(limit)
        text_query = (text_query or "").strip()

        try:
            query_vector = await self._provider.embed(query)
            if mode is SearchMode.HYBRID and text_query:
                results = await self._hybrid(
                    session, query_vector, text_query, project_id, limit, exclude_note_id
                )
            else:
                results = await self._semantic(
                    session, query_vector, project_id, limit, exclude_note_id
                )
        except Bra3nError as e:
            logger.error(
                "Search failed (%s, mode=%s, project=%s): %s",
                e.kind,
                mode.value,
                project_id,
                e,
            )
            return self._failed(query, mode, e.kind)
        except SQLAlchemyError:
            logger.exception(
                "Search store error (mode=%s, project=%s)", mode.value, project_id
            )
            return self._failed(query, mode, "store")

        logger.info(
            "Search completed: %d results (mode=%s, project=%s)",
            len(results),
            mode.value,
            project_id,
        )
        return SearchResponse(query=query, mode=mode, results=results)

    async def _semantic(
        self,
        session: AsyncSession,
        query_vector: list[float],
        project_id: str | None,
        limit: int,
        exclude_note_id: UUID | None,
    ) -> list[SearchResult]:
        hits = await self._repository.search_similar(
            session,
            query_vector,
            project_id=project_id,
            limit=limit,
            exclude_note_id=exclude_note_id,
        )
        return rank_semantic(hits, limit)

    async def _hybrid(
        self,
        session: AsyncSession,
        query_vector: list[float],
        text_query: str,
        project_id: str | None,
        limit: int,
        exclude_note_id: UUID | None,
    ) -> list[SearchResult]:
        hits = await self._repository.hybrid_candidates(
            session,
            query_vector,
            text_query,
            project_id=project_id,
            candidate_limit=limit * self._settings.HYBRID_CANDIDATE_MULTIPLIER,
        )
        if exclude_note_id is not None:
            hits = [hit for hit in hits if hit.note.id != exclude_note_id]
        return rank_hybrid(
            hits,
            limit,
            vector_weight=self._settings.HYBRID_VECTOR_WEIGHT,
            text_weight=self._settings.HYBRID_TEXT_WEIGHT,
        )

    # ------------------------------------------------------------------
    # Similar notes
    # ------------------------------------------------------------------

    async def find_similar(
        self,
        session: AsyncSession,
        note_id: UUID,
        *,
        project_id: str | None = None,
        limit: int = 5,
        exclude_source: bool | None = None,
    ) -> SearchResponse:
        """
        Find notes similar to an existing note.

        The query is the note's own embedding text (title + content) and
        goes through the same semantic path as ``search``. Results stay in
        the note's project unless ``project_id`` names another scope.

        Raises:
            NoteNotFoundError: If ``note_id`` does not exist.
        """
        try:
            note = await self._notes.get_by_id(session, note_id)
        except SQLAlchemyError:
            logger.exception("Could not load note %s for similarity search", note_id)
            return self._failed("", SearchMode.SEMANTIC, "store")
        if note is None:
            raise NoteNotFoundError(note_id)

        if exclude_source is None:
            exclude_source = self._settings.SIMILAR_EXCLUDE_SOURCE

        return await self.search(
            session,
            note.text_for_embedding,
            project_id=project_id or note.project_id,
            mode=SearchMode.SEMANTIC,
            limit=limit,
            exclude_note_id=note.id if exclude_source else None,
        )


@lru_cache
def get_search_service() -> SearchService:
    """FastAPI dependency / shared service built from global settings."""
    return SearchService(get_embedding_provider())
