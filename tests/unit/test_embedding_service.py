"""
Embedding Service Unit Tests

Single-note generation, batch runs and background processing against
in-memory fakes. No database, network or API key required.
"""

import uuid
from unittest.mock import AsyncMock, patch

import pytest
from conftest import make_note

from bra3n.core.exceptions import ConfigurationError, NoteNotFoundError
from bra3n.models import content_digest
from bra3n.services.embeddings import EmbeddingService, process_note_embedding


@pytest.fixture
def service(provider, embedding_repo, note_repo, limiter, test_settings):
    return EmbeddingService(
        provider,
        embedding_repo,
        note_repo,
        config=test_settings,
        limiter=limiter,
    )


# ---------------------------------------------------------------------------
# Single note
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_generate_stores_vector_and_hash(service, provider, embedding_repo, session):
    note_id = uuid.uuid4()

    ok = await service.generate_embedding(session, note_id, "Meeting notes agenda")

    assert ok is True
    row = embedding_repo.rows[note_id]
    assert len(row["embedding"]) == provider.dimension
    assert row["model"] == provider.model
    assert row["content_hash"] == content_digest("Meeting notes agenda")


@pytest.mark.asyncio
async def test_empty_text_is_a_noop(service, provider, embedding_repo, session):
    ok = await service.generate_embedding(session, uuid.uuid4(), "   ")

    assert ok is False
    assert provider.calls == []
    assert embedding_repo.rows == {}


@pytest.mark.asyncio
async def test_regenerate_overwrites_previous_embedding(
    service, provider, embedding_repo, session
):
    note_id = uuid.uuid4()
    await service.generate_embedding(session, note_id, "old text")
    await service.generate_embedding(session, note_id, "new text")

    assert len(embedding_repo.rows) == 1
    assert embedding_repo.rows[note_id]["content_hash"] == content_digest("new text")


@pytest.mark.asyncio
async def test_provider_failure_returns_false(service, provider, embedding_repo, session):
    provider.failing.add("broken")

    ok = await service.generate_embedding(session, uuid.uuid4(), "broken")

    assert ok is False
    assert embedding_repo.rows == {}


@pytest.mark.asyncio
async def test_store_failure_rolls_back(service, embedding_repo, session):
    note_id = uuid.uuid4()
    embedding_repo.fail_upsert_for.add(note_id)

    ok = await service.generate_embedding(session, note_id, "text")

    assert ok is False
    session.rollback.assert_awaited_once()


@pytest.mark.asyncio
async def test_regenerate_uses_title_and_content(service, provider, note_repo, session):
    note = note_repo.add(make_note("Title", "Body text"))

    assert await service.regenerate(session, note.id) is True
    assert provider.calls == ["Title Body text"]


@pytest.mark.asyncio
async def test_regenerate_unknown_note(service, session):
    with pytest.raises(NoteNotFoundError):
        await service.regenerate(session, uuid.uuid4())


# ---------------------------------------------------------------------------
# Batch
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_batch_continues_after_failure(
    service, provider, embedding_repo, limiter, session
):
    """Three notes, the second fails: two succeed and the batch completes."""
    notes = [make_note("one"), make_note("two"), make_note("three")]
    provider.failing.add("two")

    result = await service.batch_generate(session, notes)

    assert result.requested == 3
    assert result.succeeded == 2
    assert result.failed_note_ids == [notes[1].id]
    assert set(embedding_repo.rows) == {notes[0].id, notes[2].id}
    assert provider.calls == ["one", "two", "three"]
    assert limiter.acquired == 3


@pytest.mark.asyncio
async def test_batch_skips_empty_notes_without_waiting(service, provider, limiter, session):
    notes = [make_note("   ", ""), make_note("real")]

    result = await service.batch_generate(session, notes)

    assert result.skipped == 1
    assert result.succeeded == 1
    assert limiter.acquired == 1


@pytest.mark.asyncio
async def test_batch_skips_unicode_whitespace_notes(service, provider, limiter, session):
    """A note made only of non-breaking spaces is skipped, not failed."""
    notes = [make_note("\u00a0", "\u2003"), make_note("real")]

    result = await service.batch_generate(session, notes)

    assert result.skipped == 1
    assert result.succeeded == 1
    assert result.failed_note_ids == []
    assert provider.calls == ["real"]
    assert limiter.acquired == 1


@pytest.mark.asyncio
async def test_batch_fails_fast_without_configuration(service, provider, session):
    provider.configured = False

    with pytest.raises(ConfigurationError):
        await service.batch_generate(session, [make_note("one")])

    assert provider.calls == []


@pytest.mark.asyncio
async def test_batch_of_nothing(service, session):
    result = await service.batch_generate(session, [])

    assert result.requested == 0
    assert result.succeeded == 0


# ---------------------------------------------------------------------------
# Background task
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_process_note_embedding_uses_own_session(service, note_repo, embedding_repo):
    note = note_repo.add(make_note("Background", "task"))
    fake_session = AsyncMock()

    with patch("bra3n.services.embeddings.AsyncSessionLocal") as factory:
        factory.return_value.__aenter__.return_value = fake_session
        ok = await process_note_embedding(note.id, service)

    assert ok is True
    assert note.id in embedding_repo.rows


@pytest.mark.asyncio
async def test_process_note_embedding_missing_note(service):
    with patch("bra3n.services.embeddings.AsyncSessionLocal") as factory:
        factory.return_value.__aenter__.return_value = AsyncMock()
        ok = await process_note_embedding(uuid.uuid4(), service)

    assert ok is False
