"""
Notes API Router

REST endpoints for note CRUD and embedding maintenance.

Endpoints:
    POST   /                    — Create a note (embedding runs in background).
    GET    /                    — List notes, optionally scoped to a project.
    GET    /{note_id}           — Read one note.
    PATCH  /{note_id}           — Partial update (re-embeds on text change).
    DELETE /{note_id}           — Delete a note and its embedding.
    POST   /{note_id}/embedding — Regenerate one note's embedding now.
    POST   /embeddings/batch    — Sequential, rate-limited batch generation.
    GET    /embeddings/stats    — Embedding coverage per project.
"""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from bra3n.core.database import get_db
from bra3n.core.exceptions import ConfigurationError, NoteNotFoundError
from bra3n.repositories import notes as repo
from bra3n.repositories.notes import note_repository
from bra3n.schemas.embeddings import (
    BatchEmbeddingRequest,
    BatchEmbeddingResponse,
    EmbeddingStats,
    EmbeddingStatus,
)
from bra3n.schemas.notes import NoteCreate, NoteRead, NoteResponse, NoteUpdate
from bra3n.services.embeddings import (
    EmbeddingService,
    get_embedding_service,
    process_note_embedding,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Note not found")


def _unavailable(e: ConfigurationError) -> HTTPException:
    # 503: the service cannot embed until it is configured
    logger.error("Embedding provider not configured: %s", e)
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail="Embedding provider is not configured",
    )


# ---------------------------------------------------------------------------
# Embedding maintenance (declared before /{note_id} routes)
# ---------------------------------------------------------------------------


@router.post("/embeddings/batch", response_model=BatchEmbeddingResponse)
async def batch_embeddings(
    request: BatchEmbeddingRequest,
    db: AsyncSession = Depends(get_db),
    service: EmbeddingService = Depends(get_embedding_service),
) -> BatchEmbeddingResponse:
    """
    Generate embeddings for a set of notes, one at a time.

    Targets either the explicit ``note_ids`` (in the given order) or the
    notes of ``project_id``. With ``only_missing`` a project run only
    picks notes whose embedding is absent or stale. Failed notes are
    listed in the response; they never abort the batch.
    """
    if request.note_ids:
        notes = await note_repository.get_many(db, request.note_ids)
    elif request.only_missing:
        notes = await service.notes_needing_embedding(
            db, project_id=request.project_id, limit=request.limit
        )
    else:
        notes = await repo.list_notes(
            db, project_id=request.project_id, limit=request.limit
        )

    try:
        result = await service.batch_generate(db, notes)
    except ConfigurationError as e:
        raise _unavailable(e) from e

    return BatchEmbeddingResponse(
        requested=result.requested,
        succeeded=result.succeeded,
        skipped=result.skipped,
        failed_note_ids=result.failed_note_ids,
    )


@router.get("/embeddings/stats", response_model=EmbeddingStats)
async def embedding_stats(
    project_id: str | None = None,
    db: AsyncSession = Depends(get_db),
    service: EmbeddingService = Depends(get_embedding_service),
) -> EmbeddingStats:
    """Embedding coverage: totals, stale embeddings and per-project breakdown."""
    return await service.stats(db, project_id)


# ---------------------------------------------------------------------------
# Notes CRUD
# ---------------------------------------------------------------------------


@router.post("/", response_model=NoteResponse, status_code=status.HTTP_201_CREATED)
async def create_note(
    note: NoteCreate,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
):
    """
    Create a new note.

    The embedding is generated in a background task. The note is usable
    immediately but only shows up in search once its embedding exists.
    """
    new_note = await repo.create(db, note)
    background_tasks.add_task(process_note_embedding, new_note.id)
    return new_note


@router.get("/", response_model=list[NoteResponse])
async def read_notes(
    project_id: str | None = None,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
):
    """List notes with pagination, newest first."""
    return await repo.list_notes(db, project_id, skip, limit)


@router.get("/{note_id}", response_model=NoteRead)
async def read_note(note_id: UUID, db: AsyncSession = Depends(get_db)):
    """Retrieve a single note by ID."""
    db_note = await repo.get_by_id(db, note_id)
    if db_note is None:
        raise _not_found()
    return db_note


@router.patch("/{note_id}", response_model=NoteRead)
async def update_note(
    note_id: UUID,
    note_in: NoteUpdate,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
):
    """
    Partially update a note.

    A change to the title or content schedules a fresh embedding; tag
    or source changes do not.
    """
    db_note = await repo.get_by_id(db, note_id)
    if db_note is None:
        raise _not_found()

    previous_text = db_note.text_for_embedding
    db_note = await repo.update(db, db_note, note_in)
    if db_note.text_for_embedding != previous_text:
        background_tasks.add_task(process_note_embedding, db_note.id)
    return db_note


@router.delete("/{note_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_note(note_id: UUID, db: AsyncSession = Depends(get_db)) -> None:
    """Delete a note. Its embedding is removed by the FK cascade."""
    db_note = await repo.get_by_id(db, note_id)
    if db_note is None:
        raise _not_found()
    await repo.delete(db, db_note)


@router.post("/{note_id}/embedding", response_model=EmbeddingStatus)
async def regenerate_embedding(
    note_id: UUID,
    db: AsyncSession = Depends(get_db),
    service: EmbeddingService = Depends(get_embedding_service),
) -> EmbeddingStatus:
    """
    Regenerate one note's embedding synchronously.

    ``embedded`` is False when the note is empty or the provider failed.
    """
    try:
        service.ensure_configured()
        embedded = await service.regenerate(db, note_id)
    except NoteNotFoundError as e:
        raise _not_found() from e
    except ConfigurationError as e:
        raise _unavailable(e) from e
    return EmbeddingStatus(note_id=note_id, embedded=embedded)
