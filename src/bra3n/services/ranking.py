"""
Ranking

Pure scoring functions for semantic and hybrid note search.

Semantic ranking orders by cosine similarity. Hybrid ranking uses a
normalised linear combination of the two signals::

    score = (w_v * (similarity + 1) / 2 + w_t * text_rank) / (w_v + w_t)

Both terms lie in [0, 1], so the score does too. The score is strictly
increasing in each signal with the other held fixed, and a note that
matches lexically outranks an otherwise equal note that does not.
"""

from __future__ import annotations

from collections.abc import Iterable

from bra3n.repositories.embeddings import NoteHit
from bra3n.schemas.search import SearchResult

SNIPPET_LENGTH = 200


def make_snippet(content: str, length: int = SNIPPET_LENGTH) -> str:
    """Leading excerpt of a note body, cut on a word boundary when possible."""
    text = " ".join(content.split())
    if len(text) <= length:
        return text
    cut = text[: length - 3]
    if " " in cut:
        cut = cut.rsplit(" ", 1)[0]
    return cut.rstrip() + "..."


def hybrid_score(
    similarity: float,
    text_rank: float | None,
    vector_weight: float,
    text_weight: float,
) -> float:
    """Fuse cosine similarity [-1, 1] and text rank [0, 1) into [0, 1]."""
    total = vector_weight + text_weight
    if total <= 0:
        raise ValueError("Hybrid weights must sum to a positive value")
    vector_part = (similarity + 1.0) / 2.0
    text_part = text_rank or 0.0
    return (vector_weight * vector_part + text_weight * text_part) / total


def _to_result(hit: NoteHit, score: float) -> SearchResult:
    note = hit.note
    return SearchResult(
        note_id=note.id,
        project_id=note.project_id,
        title=note.title,
        content=note.content or "",
        snippet=make_snippet(note.content or ""),
        similarity=hit.similarity,
        text_rank=hit.text_rank,
        score=round(score, 4),
    )


def rank_semantic(hits: Iterable[NoteHit], limit: int) -> list[SearchResult]:
    """
    Order hits by similarity, highest first, and keep the top ``limit``.

    Ties (rare with floats) are broken by note id for a stable order.
    """
    ordered = sorted(hits, key=lambda h: (-h.similarity, str(h.note.id)))
    return [_to_result(hit, hit.similarity) for hit in ordered[:limit]]


def rank_hybrid(
    hits: Iterable[NoteHit],
    limit: int,
    *,
    vector_weight: float,
    text_weight: float,
) -> list[SearchResult]:
    """
    Order hits by fused score, highest first, and keep the top ``limit``.

    Ties are broken by similarity, then note id.
    """
    scored = [
        (hybrid_score(h.similarity, h.text_rank, vector_weight, text_weight), h)
        for h in hits
    ]
    scored.sort(key=lambda pair: (-pair[0], -pair[1].similarity, str(pair[1].note.id)))
    return [_to_result(hit, score) for score, hit in scored[:limit]]
