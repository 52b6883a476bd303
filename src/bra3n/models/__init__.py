"""Models package - re-exports all models for convenient imports."""

from bra3n.models.base import Base, TimestampMixin
from bra3n.models.embedding import EMBEDDING_DIMENSION, NoteEmbedding
from bra3n.models.note import (
    TEXT_SEARCH_CONFIG,
    Note,
    content_digest,
    embedding_text,
)

__all__ = [
    "Base",
    "TimestampMixin",
    "Note",
    "NoteEmbedding",
    "EMBEDDING_DIMENSION",
    "TEXT_SEARCH_CONFIG",
    "content_digest",
    "embedding_text",
]
