"""create note embeddings

Revision ID: 8b2e4d6c0a31
Revises: 3f9c1a7d2b10
Create Date: 2026-03-02 09:40:17.503218

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from pgvector.sqlalchemy import Vector

# revision identifiers, used by Alembic.
revision: str = "8b2e4d6c0a31"
down_revision: str | Sequence[str] | None = "3f9c1a7d2b10"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create note_embeddings (one row per note) with an HNSW index."""
    op.execute("CREATE EXTENSION IF NOT EXISTS vector")

    op.create_table(
        "note_embeddings",
        sa.Column("note_id", sa.Uuid(), nullable=False),
        sa.Column("embedding", Vector(1536), nullable=False),
        sa.Column("model", sa.String(100), nullable=False),
        sa.Column("content_hash", sa.String(64), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("note_id"),
        sa.ForeignKeyConstraint(
            ["note_id"],
            ["notes.id"],
            ondelete="CASCADE",
        ),
    )

    # HNSW index for cosine similarity search
    op.execute(
        """
        CREATE INDEX ix_note_embeddings_embedding_hnsw
        ON note_embeddings
        USING hnsw (embedding vector_cosine_ops)
        WITH (m = 16, ef_construction = 64)
        """
    )


def downgrade() -> None:
    """Drop note_embeddings."""
    op.execute("DROP INDEX IF EXISTS ix_note_embeddings_embedding_hnsw")
    op.drop_table("note_embeddings")
