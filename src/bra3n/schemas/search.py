"""
Search Schemas

Request/response models for semantic and hybrid note search.
"""

from __future__ import annotations

from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field


class SearchMode(str, Enum):
    """Ranking strategy for a search request."""

    SEMANTIC = "semantic"
    HYBRID = "hybrid"


class NoteSearchRequest(BaseModel):
    """
    Request body for POST /search.

    A blank query is accepted and answered with an empty result list.
    """

    query: str = Field(default="", max_length=8000, description="Search query text")
    project_id: str | None = Field(
        default=None,
        max_length=64,
        description="Restrict results to one project",
    )
    mode: SearchMode = Field(default=SearchMode.SEMANTIC)
    text_query: str = Field(
        default="",
        max_length=1000,
        description="Lexical query, used in hybrid mode only",
    )
    limit: int | None = Field(
        default=None,
        ge=1,
        description=(
            "Number of results to return (server default when omitted, "
            "clamped to SEARCH_MAX_LIMIT)"
        ),
    )


class SearchResult(BaseModel):
    """Single ranked note."""

    note_id: UUID
    project_id: str
    title: str
    content: str = Field(description="Full note body")
    snippet: str = Field(description="Leading excerpt of the body")
    similarity: float = Field(description="Cosine similarity in [-1, 1] (higher = closer)")
    text_rank: float | None = Field(
        default=None,
        description="Normalised full-text rank in [0, 1), hybrid mode only",
    )
    score: float = Field(description="Ranking score the list is ordered by")


class SearchError(BaseModel):
    """User-facing error attached to a failed (soft) search."""

    kind: str
    message: str


class SearchResponse(BaseModel):
    """Search outcome. On failure ``results`` is empty and ``error`` is set."""

    query: str
    mode: SearchMode
    results: list[SearchResult] = Field(default_factory=list)
    error: SearchError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None
