"""
Embedding Schemas

Request/response models for embedding maintenance endpoints.
"""

from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, Field, model_validator


class BatchEmbeddingRequest(BaseModel):
    """
    Request body for POST /notes/embeddings/batch.

    Either an explicit list of note ids, or a project whose notes should
    be (re)embedded. ``only_missing`` limits a project run to notes whose
    embedding is absent or stale.
    """

    note_ids: list[UUID] | None = Field(default=None, max_length=500)
    project_id: str | None = Field(default=None, max_length=64)
    only_missing: bool = True
    limit: int = Field(default=100, ge=1, le=500)

    @model_validator(mode="after")
    def _require_target(self) -> BatchEmbeddingRequest:
        if not self.note_ids and not self.project_id:
            raise ValueError("Provide note_ids or project_id")
        return self


class BatchEmbeddingResponse(BaseModel):
    """Aggregate result of a batch run."""

    requested: int
    succeeded: int
    skipped: int
    failed_note_ids: list[UUID] = Field(default_factory=list)


class EmbeddingStatus(BaseModel):
    """Result of regenerating a single note's embedding."""

    note_id: UUID
    embedded: bool


class ProjectEmbeddingStats(BaseModel):
    project_id: str
    total_notes: int
    embedded_notes: int
    stale_embeddings: int
    percentage: float


class EmbeddingStats(BaseModel):
    """Embedding coverage, overall and per project."""

    total_notes: int
    embedded_notes: int
    stale_embeddings: int
    embedding_percentage: float
    project_breakdown: list[ProjectEmbeddingStats] = Field(default_factory=list)
