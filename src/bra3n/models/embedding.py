"""
Note Embedding Model

One vector per note, keyed by note id. Rows are upserted by primary key
(last write wins) and removed with their note via ON DELETE CASCADE.
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from pgvector.sqlalchemy import Vector
from sqlalchemy import ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bra3n.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from bra3n.models.note import Note

# text-embedding-3-small output size; EMBEDDING_DIMENSION must agree
EMBEDDING_DIMENSION: int = 1536


class NoteEmbedding(Base, TimestampMixin):
    """
    Persistent embedding for a single note.

    Attributes:
        note_id: Primary key and foreign key to notes.id (CASCADE delete).
        embedding: 1536-dim vector, compared by cosine distance.
        model: Embedding model that produced the vector.
        content_hash: SHA-256 of the embedded text. A mismatch with the
            note's current text marks the embedding as stale.
    """

    __tablename__ = "note_embeddings"

    note_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("notes.id", ondelete="CASCADE"),
        primary_key=True,
    )
    embedding: Mapped[list[float]] = mapped_column(Vector(EMBEDDING_DIMENSION))
    model: Mapped[str] = mapped_column(String(100))
    content_hash: Mapped[str] = mapped_column(String(64))

    note: Mapped[Note] = relationship(back_populates="embedding")

    def __repr__(self) -> str:
        return f"<NoteEmbedding(note_id={self.note_id!s:.8}, model='{self.model}')>"
