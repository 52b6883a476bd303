"""
Note Repository

Data access layer for Note entities. Search queries live in
repositories/embeddings.py; this module only covers the note lifecycle.
"""

from collections.abc import Sequence
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bra3n.models import Note
from bra3n.repositories.base import BaseRepository
from bra3n.schemas.notes import NoteCreate


class NoteRepository(BaseRepository[Note]):
    """
    Repository for Note entities.

    Inherits standard CRUD from BaseRepository and adds project-scoped
    listing and bulk lookup by id.
    """

    def __init__(self) -> None:
        super().__init__(Note)

    async def list_notes(
        self,
        session: AsyncSession,
        project_id: str | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> Sequence[Note]:
        """List notes, newest first, optionally scoped to one project."""
        stmt = select(Note)
        if project_id is not None:
            stmt = stmt.where(Note.project_id == project_id)
        stmt = stmt.order_by(Note.created_at.desc(), Note.id).offset(skip).limit(limit)
        result = await session.execute(stmt)
        return result.scalars().all()

    async def get_many(
        self,
        session: AsyncSession,
        note_ids: Sequence[UUID],
    ) -> list[Note]:
        """
        Fetch notes by id, preserving the order of ``note_ids``.

        Unknown ids are dropped silently; callers compare lengths when
        they need to report them.
        """
        if not note_ids:
            return []
        result = await session.execute(select(Note).where(Note.id.in_(note_ids)))
        by_id = {note.id: note for note in result.scalars().all()}
        return [by_id[note_id] for note_id in note_ids if note_id in by_id]


# Module-level instance for function-based API
note_repository = NoteRepository()


# ============================================================================
# Function-based API (delegates to repository instance)
# Provides a simpler import pattern: `from repositories import notes as repo`
# ============================================================================


async def create(session: AsyncSession, note_in: NoteCreate | dict[str, Any]) -> Note:
    """Create a new note."""
    return await note_repository.create(session, note_in)


async def get_by_id(session: AsyncSession, note_id: UUID) -> Note | None:
    """Get a note by ID."""
    return await note_repository.get_by_id(session, note_id)


async def list_notes(
    session: AsyncSession,
    project_id: str | None = None,
    skip: int = 0,
    limit: int = 100,
) -> Sequence[Note]:
    """List notes with pagination."""
    return await note_repository.list_notes(session, project_id, skip, limit)


async def update(session: AsyncSession, note: Note, note_in: Any) -> Note:
    """Apply a partial update."""
    return await note_repository.update(session, note, note_in)


async def delete(session: AsyncSession, note: Note) -> None:
    """Delete a note (its embedding is removed by FK cascade)."""
    await note_repository.delete(session, note)
