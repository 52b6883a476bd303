"""
Embedding Repository

Persistence and retrieval for note embeddings.

Vector search uses pgvector's cosine distance (HNSW index on
``note_embeddings.embedding``); lexical ranking uses the generated
``notes.search_vector`` column with ``ts_rank_cd``. Every query accepts
an optional project filter applied in SQL, so results never cross
project boundaries.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any, NamedTuple
from uuid import UUID

from sqlalchemy import case, cast, func, or_, select
from sqlalchemy.dialects.postgresql import REGCONFIG, insert
from sqlalchemy.ext.asyncio import AsyncSession

from bra3n.models import TEXT_SEARCH_CONFIG, Note, NoteEmbedding
from bra3n.models.note import EMBED_STRIP_CHARS

logger = logging.getLogger(__name__)

# ts_rank_cd normalisation flag 32: rank / (rank + 1), maps into [0, 1)
_RANK_NORMALIZATION = 32


class NoteHit(NamedTuple):
    """A candidate note with its raw ranking signals."""

    note: Note
    similarity: float
    text_rank: float | None = None


class ProjectCoverage(NamedTuple):
    """Embedding coverage counters for one project."""

    project_id: str
    total_notes: int
    embedded_notes: int
    stale_embeddings: int


def _similarity(distance: Any) -> float:
    """Cosine distance [0, 2] → similarity [-1, 1], rounded to 4 dp."""
    return round(max(-1.0, min(1.0, 1.0 - float(distance))), 4)


def _embedding_text() -> Any:
    """SQL expression mirroring embedding_text(title, content)."""
    return func.btrim(
        Note.title + " " + func.coalesce(Note.content, ""),
        EMBED_STRIP_CHARS,
    )


def _current_digest() -> Any:
    """SQL expression mirroring content_digest(embedding_text(title, content))."""
    return func.encode(func.sha256(func.convert_to(_embedding_text(), "UTF8")), "hex")


def _tsquery(text: str) -> Any:
    return func.websearch_to_tsquery(cast(TEXT_SEARCH_CONFIG, REGCONFIG), text)


class EmbeddingRepository:
    """
    Repository for note embeddings with vector and hybrid search.

    All methods expect an externally managed ``AsyncSession``.

    Key guarantees:
        - ``upsert``: one row per note, last write wins.
        - ``search_similar``: ordered by cosine similarity, highest first.
        - ``hybrid_candidates``: each candidate carries both signals, so
          fusion can be computed exactly in Python.
    """

    # ------------------------------------------------------------------
    # Write operations
    # ------------------------------------------------------------------

    async def upsert(
        self,
        session: AsyncSession,
        *,
        note_id: UUID,
        embedding: list[float],
        model: str,
        content_hash: str,
    ) -> None:
        """Insert or replace the embedding of a note (keyed by note id)."""
        stmt = insert(NoteEmbedding).values(
            note_id=note_id,
            embedding=embedding,
            model=model,
            content_hash=content_hash,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[NoteEmbedding.note_id],
            set_={
                "embedding": stmt.excluded.embedding,
                "model": stmt.excluded.model,
                "content_hash": stmt.excluded.content_hash,
                "updated_at": func.now(),
            },
        )
        await session.execute(stmt)
        await session.commit()

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    async def search_similar(
        self,
        session: AsyncSession,
        query_embedding: list[float],
        *,
        project_id: str | None = None,
        limit: int = 10,
        exclude_note_id: UUID | None = None,
    ) -> list[NoteHit]:
        """
        Rank embedded notes by cosine similarity to a query vector.

        Args:
            session: Active async database session.
            query_embedding: Query vector (same dimension as stored vectors).
            project_id: Restrict to one project.
            limit: Maximum number of results.
            exclude_note_id: Drop this note from the results.

        Returns:
            Hits ordered by similarity (highest first).
        """
        distance = NoteEmbedding.embedding.cosine_distance(query_embedding).label(
            "distance"
        )
        stmt = select(Note, distance).join(
            NoteEmbedding, NoteEmbedding.note_id == Note.id
        )
        if project_id is not None:
            stmt = stmt.where(Note.project_id == project_id)
        if exclude_note_id is not None:
            stmt = stmt.where(Note.id != exclude_note_id)
        stmt = stmt.order_by(distance).limit(limit)

        result = await session.execute(stmt)
        return [NoteHit(row[0], _similarity(row[1])) for row in result.all()]

    async def hybrid_candidates(
        self,
        session: AsyncSession,
        query_embedding: list[float],
        text_query: str,
        *,
        project_id: str | None = None,
        candidate_limit: int = 40,
    ) -> list[NoteHit]:
        """
        Collect candidates for hybrid ranking from both signals.

        Runs the vector top-N and the full-text top-N, each annotated with
        the other signal (text rank 0.0 for vector-only candidates), and
        merges them by note id. Only embedded notes are considered.
        """
        tsquery = _tsquery(text_query)
        rank = func.ts_rank_cd(Note.search_vector, tsquery, _RANK_NORMALIZATION)
        matches = Note.search_vector.op("@@")(tsquery)
        distance = NoteEmbedding.embedding.cosine_distance(query_embedding).label(
            "distance"
        )

        base = select(Note, distance).join(
            NoteEmbedding, NoteEmbedding.note_id == Note.id
        )
        if project_id is not None:
            base = base.where(Note.project_id == project_id)

        vector_stmt = (
            base.add_columns(case((matches, rank), else_=0.0).label("text_rank"))
            .order_by(distance)
            .limit(candidate_limit)
        )
        text_stmt = (
            base.add_columns(rank.label("text_rank"))
            .where(matches)
            .order_by(rank.desc())
            .limit(candidate_limit)
        )

        merged: dict[UUID, NoteHit] = {}
        for stmt in (vector_stmt, text_stmt):
            result = await session.execute(stmt)
            for note, dist, text_rank in result.all():
                merged.setdefault(
                    note.id,
                    NoteHit(note, _similarity(dist), round(float(text_rank), 4)),
                )

        logger.debug(
            "Hybrid candidates: %d (project=%s, text=%r)",
            len(merged),
            project_id,
            text_query[:50],
        )
        return list(merged.values())

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    async def notes_needing_embedding(
        self,
        session: AsyncSession,
        *,
        project_id: str | None = None,
        limit: int = 100,
    ) -> Sequence[Note]:
        """
        Notes with no embedding, or one computed from outdated text.

        Blank notes are left out: they are never embedded, so they would
        fill every page and stall backfill runs.
        """
        stmt = (
            select(Note)
            .outerjoin(NoteEmbedding, NoteEmbedding.note_id == Note.id)
            .where(
                _embedding_text() != "",
                or_(
                    NoteEmbedding.note_id.is_(None),
                    NoteEmbedding.content_hash != _current_digest(),
                ),
            )
        )
        if project_id is not None:
            stmt = stmt.where(Note.project_id == project_id)
        stmt = stmt.order_by(Note.created_at, Note.id).limit(limit)
        result = await session.execute(stmt)
        return result.scalars().all()

    async def coverage(
        self,
        session: AsyncSession,
        project_id: str | None = None,
    ) -> list[ProjectCoverage]:
        """Per-project counts of notes, embedded notes and stale embeddings."""
        embedded = func.count(NoteEmbedding.note_id)
        stmt = (
            select(
                Note.project_id,
                func.count(Note.id),
                embedded,
                embedded.filter(NoteEmbedding.content_hash != _current_digest()),
            )
            .outerjoin(NoteEmbedding, NoteEmbedding.note_id == Note.id)
            .group_by(Note.project_id)
            .order_by(Note.project_id)
        )
        if project_id is not None:
            stmt = stmt.where(Note.project_id == project_id)
        result = await session.execute(stmt)
        return [ProjectCoverage(*row) for row in result.all()]
