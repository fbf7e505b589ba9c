"""
CodeVault Backend — Snippet, Tag and Snippet–Tag SQLAlchemy Models
===================================================================

What:  ORM models for the `snippets`, `tags` and `snippet_tags` tables.
Who:   Used by SnippetService/TagService for queries and by Alembic.

Ownership:
    Every row carries the owning user's id. Row-level security in the
    hosted store is the real enforcement; every query in this package also
    filters on `user_id` equality.

Associations:
    `snippet_tags` is a plain many-to-many join table. Its foreign keys
    cascade on delete, so deleting a snippet or a tag removes its links at
    the store level; the access layer never deletes links for that purpose.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    Uuid,
    false,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from codevault.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Snippet(Base):
    """
    A stored unit of source code with metadata.

    Query Patterns:
        - Owned list:   WHERE user_id = :me ORDER BY created_at DESC
        - Public list:  WHERE is_public AND user_id <> :me ORDER BY created_at DESC
        - Substring:    title/description/code ILIKE '%q%' (OR'd)
    """

    __tablename__ = "snippets"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    code: Mapped[str] = mapped_column(Text, nullable=False)
    language: Mapped[str] = mapped_column(String(50), nullable=False, default="plaintext")
    is_favorite: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )
    is_public: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        Index("idx_snippets_user_created", "user_id", "created_at"),
        Index("idx_snippets_public_created", "is_public", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Snippet(id={self.id}, title='{self.title}', language='{self.language}')>"


class Tag(Base):
    """A user-defined label with a display color. Tags are user-scoped, not global."""

    __tablename__ = "tags"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(64), nullable=False)
    color: Mapped[str] = mapped_column(String(16), nullable=False, default="#3B82F6")

    def __repr__(self) -> str:
        return f"<Tag(id={self.id}, name='{self.name}')>"


class SnippetTag(Base):
    """Join row linking a snippet to one of its owner's tags."""

    __tablename__ = "snippet_tags"

    snippet_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("snippets.id", ondelete="CASCADE"), primary_key=True
    )
    tag_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True
    )
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)

    __table_args__ = (Index("idx_snippet_tags_tag", "tag_id"),)
