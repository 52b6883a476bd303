"""
SQLAlchemy Base Models

Declarative base and the timestamp mixin shared by notes and embeddings.
"""

from datetime import datetime

from sqlalchemy import DateTime
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import func


class Base(DeclarativeBase):
    """Declarative base class for all SQLAlchemy ORM models."""

    pass


class TimestampMixin:
    """
    Adds created_at / updated_at columns.

    created_at is set by the database on INSERT. updated_at stays NULL
    until the first UPDATE; for embeddings it records the last
    regeneration, since upserts go through ON CONFLICT DO UPDATE.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        onupdate=func.now(),
        nullable=True,
    )
