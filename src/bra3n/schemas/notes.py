"""
Note Schemas

Pydantic models for Note API request/response validation.
Separates concerns: NoteCreate (input), NoteResponse (output), NoteUpdate (partial).
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _reject_blank_title(value: str | None) -> str | None:
    # A whitespace-only title with empty content could never be embedded
    if value is not None and not value.strip():
        raise ValueError("title must not be blank")
    return value


class NoteBase(BaseModel):
    """Base schema with shared validation rules for Note fields."""

    title: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Note title (1-200 chars)",
    )
    content: str = Field(default="", description="Note body, may be empty")
    tags: list[str] = Field(default_factory=list)
    source_document_id: str | None = Field(
        default=None,
        max_length=64,
        description="Document the note was derived from, if any",
    )


class NoteCreate(NoteBase):
    """Request schema for POST /notes."""

    project_id: str = Field(..., min_length=1, max_length=64)

    title_not_blank = field_validator("title")(_reject_blank_title)


class NoteUpdate(BaseModel):
    """
    Request schema for PATCH /notes/{id}.

    All fields optional to support partial updates. The project of a
    note is fixed at creation time.
    """

    title: str | None = Field(None, min_length=1, max_length=200)
    content: str | None = None
    tags: list[str] | None = None
    source_document_id: str | None = Field(None, max_length=64)

    title_not_blank = field_validator("title")(_reject_blank_title)


class NoteRead(NoteBase):
    """Full Note representation including all timestamps."""

    id: UUID
    project_id: str
    created_at: datetime
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)  # Enables ORM model conversion


class NoteResponse(NoteBase):
    """
    Lightweight response schema for list endpoints.

    Excludes updated_at to reduce payload size on bulk queries.
    """

    id: UUID
    project_id: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
