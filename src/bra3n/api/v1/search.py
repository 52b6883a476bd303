"""
Search API Router

Endpoints:
    POST /                    — Semantic or hybrid search over notes.
    GET  /similar/{note_id}   — Notes similar to an existing note.

Search failures are soft: the body is always a ``SearchResponse``. When
``error`` is set, the status code reflects its kind (503 configuration,
502 provider, 500 store).
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from bra3n.core.database import get_db
from bra3n.core.exceptions import NoteNotFoundError
from bra3n.schemas.search import NoteSearchRequest, SearchResponse
from bra3n.services.search import SearchService, get_search_service

router = APIRouter()

_ERROR_STATUS = {
    "configuration": status.HTTP_503_SERVICE_UNAVAILABLE,
    "provider": status.HTTP_502_BAD_GATEWAY,
    "validation": 422,
}


def _respond(outcome: SearchResponse) -> SearchResponse | JSONResponse:
    if outcome.error is None:
        return outcome
    return JSONResponse(
        status_code=_ERROR_STATUS.get(
            outcome.error.kind, status.HTTP_500_INTERNAL_SERVER_ERROR
        ),
        content=outcome.model_dump(mode="json"),
    )


@router.post(
    "/",
    response_model=SearchResponse,
    summary="Search notes",
    responses={
        502: {"description": "Embedding provider failed", "model": SearchResponse},
        503: {"description": "Embedding provider not configured", "model": SearchResponse},
    },
)
async def search_notes(
    request: NoteSearchRequest,
    db: AsyncSession = Depends(get_db),
    service: SearchService = Depends(get_search_service),
):
    """
    Rank notes against a natural-language query.

    ``semantic`` mode orders by cosine similarity of embeddings.
    ``hybrid`` mode fuses similarity with full-text rank of
    ``text_query``; a blank ``text_query`` falls back to semantic ranking.
    A blank ``query`` returns an empty result list.
    """
    outcome = await service.search(
        db,
        request.query,
        project_id=request.project_id,
        mode=request.mode,
        text_query=request.text_query,
        limit=request.limit,
    )
    return _respond(outcome)


@router.get(
    "/similar/{note_id}",
    response_model=SearchResponse,
    summary="Find notes similar to a note",
)
async def similar_notes(
    note_id: UUID,
    project_id: str | None = None,
    limit: int = Query(default=5, ge=1),
    exclude_source: bool | None = None,
    db: AsyncSession = Depends(get_db),
    service: SearchService = Depends(get_search_service),
):
    """
    Notes closest to ``note_id`` by title + content.

    Scoped to the note's own project unless ``project_id`` is given.
    """
    try:
        outcome = await service.find_similar(
            db,
            note_id,
            project_id=project_id,
            limit=limit,
            exclude_source=exclude_source,
        )
    except NoteNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Note not found"
        ) from e
    return _respond(outcome)
