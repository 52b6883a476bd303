"""
Pytest Configuration and Fixtures

Unit tests run offline against in-memory fakes of the embedding provider
and repositories. Integration tests (marked ``live``) need a running
stack and use the session-scoped HTTP fixtures at the bottom.
"""

import os

from dotenv import load_dotenv

# ---------------------------------------------------------------------------
# Test environment defaults — MUST be before any bra3n imports.
#
# 1. Load .env first so that Docker-matching credentials are available.
# 2. setdefault fills in anything still missing (CI runners, fresh clones
#    without a .env file) so that pydantic Settings validation doesn't crash.
# ---------------------------------------------------------------------------
load_dotenv()  # .env → os.environ (no-op if file is missing)

_test_env = {
    "POSTGRES_USER": "bra3n",
    "POSTGRES_PASSWORD": "bra3n_password",
    "POSTGRES_HOST": "localhost",
    "POSTGRES_PORT": "5432",
    "POSTGRES_DB": "bra3n_db",
    "OPENAI_API_KEY": "mock",
    "EMBEDDING_CACHE_ENABLED": "false",
}
for _key, _value in _test_env.items():
    os.environ.setdefault(_key, _value)

# ---------------------------------------------------------------------------
# Imports (safe now that env vars are set)
# ---------------------------------------------------------------------------
import math  # noqa: E402
import time  # noqa: E402
import uuid  # noqa: E402
from collections.abc import Generator  # noqa: E402
from unittest.mock import AsyncMock  # noqa: E402

import httpx  # noqa: E402
import pytest  # noqa: E402
from sqlalchemy.exc import OperationalError  # noqa: E402

from bra3n.core.config import Settings  # noqa: E402
from bra3n.core.exceptions import (  # noqa: E402
    ConfigurationError,
    EmbeddingProviderError,
)
from bra3n.models import Note, content_digest  # noqa: E402
from bra3n.repositories.embeddings import NoteHit  # noqa: E402
from bra3n.services.ai import mock_embedding  # noqa: E402

BASE_URL = "http://localhost:8000"
TEST_DIMENSION = 8


# ---------------------------------------------------------------------------
# In-memory fakes
# ---------------------------------------------------------------------------


def make_note(
    title: str,
    content: str = "",
    project_id: str = "proj-a",
    note_id: uuid.UUID | None = None,
) -> Note:
    """Transient Note instance (never flushed)."""
    return Note(
        id=note_id or uuid.uuid4(),
        project_id=project_id,
        title=title,
        content=content,
        tags=[],
    )


def _cosine(a: list[float], b: list[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b, strict=True))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    return dot / norm if norm else 0.0


class FakeProvider:
    """
    Embedding provider stand-in.

    ``vectors`` maps exact text to a vector; anything else gets the
    deterministic mock embedding. Texts listed in ``failing`` raise
    EmbeddingProviderError.
    """

    model = "fake-embedding"
    dimension = TEST_DIMENSION

    def __init__(self) -> None:
        self.vectors: dict[str, list[float]] = {}
        self.failing: set[str] = set()
        self.configured = True
        self.calls: list[str] = []

    def ensure_configured(self) -> None:
        if not self.configured:
            raise ConfigurationError("OPENAI_API_KEY is not configured")

    async def embed(self, text: str) -> list[float]:
        self.ensure_configured()
        self.calls.append(text)
        if text in self.failing:
            raise EmbeddingProviderError("rate limited")
        return self.vectors.get(text) or mock_embedding(text, self.dimension)


class FakeNoteRepository:
    def __init__(self) -> None:
        self.notes: dict[uuid.UUID, Note] = {}

    def add(self, note: Note) -> Note:
        self.notes[note.id] = note
        return note

    async def get_by_id(self, session, note_id):
        return self.notes.get(note_id)

    async def get_many(self, session, note_ids):
        return [self.notes[i] for i in note_ids if i in self.notes]


class FakeEmbeddingRepository:
    """
    Brute-force stand-in for the pgvector repository.

    Text rank is the share of query terms found in the note text, scaled
    into [0, 1) like ts_rank_cd with normalisation 32.
    """

    def __init__(self, notes: FakeNoteRepository) -> None:
        self._notes = notes
        self.rows: dict[uuid.UUID, dict] = {}
        self.fail_upsert_for: set[uuid.UUID] = set()
        self.fail_search = False

    async def upsert(self, session, *, note_id, embedding, model, content_hash):
        if note_id in self.fail_upsert_for:
            raise OperationalError("INSERT", {}, Exception("connection lost"))
        self.rows[note_id] = {
            "embedding": embedding,
            "model": model,
            "content_hash": content_hash,
        }

    def put(self, note: Note, vector: list[float]) -> None:
        """Store an embedding directly (test setup)."""
        self._notes.add(note)
        self.rows[note.id] = {
            "embedding": vector,
            "model": FakeProvider.model,
            "content_hash": content_digest(note.text_for_embedding),
        }

    def _embedded(self, project_id):
        for note_id, row in self.rows.items():
            note = self._notes.notes[note_id]
            if project_id is None or note.project_id == project_id:
                yield note, row["embedding"]

    async def search_similar(
        self, session, query_embedding, *, project_id=None, limit=10, exclude_note_id=None
    ):
        if self.fail_search:
            raise OperationalError("SELECT", {}, Exception("connection lost"))
        hits = [
            NoteHit(note, round(_cosine(vector, query_embedding), 4))
            for note, vector in self._embedded(project_id)
            if note.id != exclude_note_id
        ]
        hits.sort(key=lambda h: -h.similarity)
        return hits[:limit]

    @staticmethod
    def _text_rank(note: Note, text_query: str) -> float:
        terms = text_query.lower().split()
        words = set(note.text_for_embedding.lower().split())
        matched = sum(1 for term in terms if term in words)
        if not matched:
            return 0.0
        raw = matched / len(terms)
        return round(raw / (raw + 1), 4)

    async def hybrid_candidates(
        self, session, query_embedding, text_query, *, project_id=None, candidate_limit=40
    ):
        if self.fail_search:
            raise OperationalError("SELECT", {}, Exception("connection lost"))
        return [
            NoteHit(
                note,
                round(_cosine(vector, query_embedding), 4),
                self._text_rank(note, text_query),
            )
            for note, vector in self._embedded(project_id)
        ]

    async def notes_needing_embedding(self, session, *, project_id=None, limit=100):
        return [
            note
            for note in self._notes.notes.values()
            if (project_id is None or note.project_id == project_id)
            and note.id not in self.rows
            and note.text_for_embedding
        ][:limit]


class InstantLimiter:
    """Token bucket replacement that never waits and counts acquisitions."""

    def __init__(self) -> None:
        self.acquired = 0

    async def acquire(self) -> None:
        self.acquired += 1


def unit_vector(*components: float) -> list[float]:
    """Pad to TEST_DIMENSION and L2-normalise."""
    padded = list(components) + [0.0] * (TEST_DIMENSION - len(components))
    norm = math.sqrt(sum(v * v for v in padded)) or 1.0
    return [v / norm for v in padded]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        POSTGRES_USER="u",
        POSTGRES_PASSWORD="p",
        POSTGRES_HOST="localhost",
        POSTGRES_DB="db",
        OPENAI_API_KEY="sk-test",
        EMBEDDING_DIMENSION=TEST_DIMENSION,
        EMBEDDING_CACHE_ENABLED=False,
    )


@pytest.fixture
def session() -> AsyncMock:
    """Database session stand-in (fakes never touch it)."""
    return AsyncMock()


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def note_repo() -> FakeNoteRepository:
    return FakeNoteRepository()


@pytest.fixture
def embedding_repo(note_repo) -> FakeEmbeddingRepository:
    return FakeEmbeddingRepository(note_repo)


@pytest.fixture
def limiter() -> InstantLimiter:
    return InstantLimiter()


# ---------------------------------------------------------------------------
# Live stack fixtures (integration tests)
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def wait_for_api():
    """
    Block until the API is ready or timeout expires.

    Polls /health endpoint with 1s intervals for up to 30s.
    Fails the test session if API is unreachable (Docker likely not running).
    """
    url = f"{BASE_URL}/health"
    timeout = 30
    start = time.time()

    print("\n[Test] Waiting for API...")
    while time.time() - start < timeout:
        try:
            res = httpx.get(url, timeout=1.0)
            if res.status_code == 200:
                print("API Ready")
                return
        except httpx.RequestError:
            time.sleep(1)

    pytest.fail("API unreachable. Docker is likely down.")


@pytest.fixture(scope="session")
def api_client(wait_for_api) -> Generator[httpx.Client, None, None]:
    """
    Pre-configured HTTP client for integration tests.

    Base URL points to /api/v1 for cleaner test assertions.
    """
    with httpx.Client(base_url=f"{BASE_URL}/api/v1", timeout=10.0) as client:
        yield client
