"""Repositories package."""

from bra3n.repositories.base import BaseRepository
from bra3n.repositories.embeddings import (
    EmbeddingRepository,
    NoteHit,
    ProjectCoverage,
)
from bra3n.repositories.notes import NoteRepository, note_repository

__all__ = [
    "BaseRepository",
    "EmbeddingRepository",
    "NoteHit",
    "NoteRepository",
    "ProjectCoverage",
    "note_repository",
]
