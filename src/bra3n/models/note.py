"""
Note Model

Core entity for user-authored notes grouped by project.
A generated tsvector column backs lexical ranking for hybrid search;
the vector lives in the separate note_embeddings table.
"""

from __future__ import annotations

import hashlib
import uuid
from typing import TYPE_CHECKING

from sqlalchemy import Computed, Index, String, Text, Uuid
from sqlalchemy.dialects.postgresql import ARRAY, TSVECTOR
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bra3n.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from bra3n.models.embedding import NoteEmbedding

# Must match the config used at query time (repositories/embeddings.py)
TEXT_SEARCH_CONFIG = "english"

# Same set is passed to btrim() when the digest is computed in SQL
EMBED_STRIP_CHARS = " \t\n\r\x0b\x0c"


def embedding_text(title: str, content: str | None) -> str:
    """Text a note is embedded (and searched-similar) by: title, space, body."""
    return f"{title} {content or ''}".strip(EMBED_STRIP_CHARS)


def content_digest(text: str) -> str:
    """SHA-256 hex digest of embedded text, used to detect stale embeddings."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


class Note(Base, TimestampMixin):
    """
    Note entity.

    Attributes:
        id: UUID primary key (generated Python-side).
        project_id: Owning project ("brain"), the tenant scope for search.
        title: Note title (max 200 chars).
        content: Body text, may be empty.
        tags: Free-form labels.
        source_document_id: Optional reference to the document it came from.
        search_vector: Generated full-text vector over title + content.
        embedding: One-to-one NoteEmbedding, absent until generated.
    """

    __tablename__ = "notes"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    project_id: Mapped[str] = mapped_column(String(64), index=True)
    title: Mapped[str] = mapped_column(String(200))
    content: Mapped[str] = mapped_column(Text, default="", server_default="")
    tags: Mapped[list[str]] = mapped_column(
        ARRAY(String), default=list, server_default="{}"
    )
    source_document_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    search_vector: Mapped[str | None] = mapped_column(
        TSVECTOR,
        Computed(
            f"to_tsvector('{TEXT_SEARCH_CONFIG}'::regconfig, "
            "coalesce(title, '') || ' ' || coalesce(content, ''))",
            persisted=True,
        ),
        nullable=True,
    )

    # passive_deletes: the FK cascade removes the embedding row in the database
    embedding: Mapped[NoteEmbedding | None] = relationship(
        back_populates="note",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="raise",
    )

    __table_args__ = (
        Index("ix_notes_search_vector", "search_vector", postgresql_using="gin"),
    )

    def __repr__(self) -> str:
        return f"<Note(id={self.id!s:.8}, title='{self.title[:20]}...')>"

    @property
    def text_for_embedding(self) -> str:
        return embedding_text(self.title, self.content)
