#!/usr/bin/env python3
"""
Backfill Embeddings Script

Generates embeddings for notes that have none, or whose embedding was
computed from outdated text. Runs the same sequential, rate-limited
batch as POST /api/v1/notes/embeddings/batch.

Usage:
    Requires the database to be reachable (POSTGRES_* env vars or .env):
    $ python scripts/backfill_embeddings.py
    $ python scripts/backfill_embeddings.py --project proj-123 --limit 50
    $ python scripts/backfill_embeddings.py --dry-run
"""

import argparse
import asyncio
import os
import sys

# Required for direct script execution without package installation
sys.path.append(os.path.join(os.path.dirname(__file__), "../src"))

from bra3n.core.database import AsyncSessionLocal, dispose_engine  # noqa: E402
from bra3n.core.exceptions import ConfigurationError  # noqa: E402
from bra3n.core.logging import setup_logging  # noqa: E402
from bra3n.services.embeddings import get_embedding_service  # noqa: E402


def _info(msg: str) -> None:
    print(f"ℹ {msg}")


def _success(msg: str) -> None:
    print(f"✓ {msg}")


def _error(msg: str) -> None:
    print(f"✗ {msg}")


async def backfill(project_id: str | None, limit: int, dry_run: bool) -> int:
    """Embed up to ``limit`` notes needing an embedding. Returns an exit code."""
    service = get_embedding_service()

    async with AsyncSessionLocal() as session:
        notes = await service.notes_needing_embedding(
            session, project_id=project_id, limit=limit
        )
        scope = f"project '{project_id}'" if project_id else "all projects"
        _info(f"{len(notes)} notes need an embedding ({scope})")

        if dry_run or not notes:
            for note in notes:
                print(f"  • {note.id}  {note.title[:60]}")
            return 0

        try:
            result = await service.batch_generate(session, notes)
        except ConfigurationError as e:
            _error(str(e))
            return 2

    _success(
        f"Generated embeddings for {result.succeeded} out of {result.requested} "
        f"notes ({result.skipped} empty)"
    )
    for note_id in result.failed_note_ids:
        _error(f"Failed: {note_id}")
    return 1 if result.failed_note_ids else 0


async def _run(args: argparse.Namespace) -> int:
    try:
        return await backfill(args.project, args.limit, args.dry_run)
    finally:
        await dispose_engine()


def main() -> int:
    parser = argparse.ArgumentParser(description="Backfill missing or stale note embeddings")
    parser.add_argument("--project", default=None, help="Only notes of this project")
    parser.add_argument(
        "--limit", type=int, default=100, help="Maximum notes to process (default: 100)"
    )
    parser.add_argument(
        "--dry-run", action="store_true", help="List the notes without embedding them"
    )
    args = parser.parse_args()

    setup_logging()
    print("\n🧠 Bra3n Embedding Backfill\n")
    return asyncio.run(_run(args))


if __name__ == "__main__":
    sys.exit(main())
