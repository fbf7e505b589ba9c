"""
CodeVault Backend — Note (Document) SQLAlchemy Model
=====================================================

What:  ORM model for the `notes` table: a titled document record with an
       optional PDF attachment.
Who:   Used by NoteService for CRUD and by Alembic for schema management.

The PDF itself lives in object storage; the row only keeps its public URL
(`pdf_url`) and original filename (`pdf_name`).

Query Patterns:
    - List my notes: WHERE user_id = :me ORDER BY updated_at DESC
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, Index, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from codevault.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Note(Base):
    """
    A document note owned by one user.

    Lifecycle:
        1. Created when the user saves an uploaded PDF
        2. Renamed in place (title + updated_at)
        3. Deleted together with its stored PDF (file removal is best-effort)
    """

    __tablename__ = "notes"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False, default="Untitled")

    # Free-text body; PDF notes keep it empty
    content: Mapped[str] = mapped_column(Text, nullable=False, default="", server_default=text("''"))

    pdf_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    pdf_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

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
        Index("idx_notes_user_updated", "user_id", "updated_at"),
    )

    def __repr__(self) -> str:
        return f"<Note(id={self.id}, title='{self.title}', updated_at='{self.updated_at}')>"
