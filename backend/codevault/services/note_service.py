"""
CodeVault Backend — Note Service (Documents with PDF attachments)
==================================================================

What:  Upload → validate → store → persist workflow for PDF notes, plus
       listing, renaming and deletion.
How:   Composes FileService with database operations on the `notes` table.
Who:   Called by the /api/notes route handlers.

Orchestration Flow (POST /api/notes):
    ┌──────────┐    ┌─────────────┐    ┌──────────┐
    │  Upload  │───▶│  Validate   │───▶│  Insert  │
    │  (Route) │    │  & Store    │    │  (DB)    │
    └──────────┘    │  (FileServ) │    └──────────┘
                    └─────────────┘
    If the insert fails, the stored PDF is removed again.

Deletion order is the reverse: the row goes first, then the PDF is removed
best-effort. A leftover file is harmless; a row pointing at a missing file
is not.
"""

import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from codevault.database import store_error
from codevault.exceptions import NotFoundError
from codevault.models.note import Note
from codevault.schemas.note import NoteOut
from codevault.services.file_service import (
    FileService,
    file_service as default_file_service,
    public_url,
    relative_from_url,
)

logger = logging.getLogger(__name__)


def default_title(filename: Optional[str]) -> str:
    """`lecture-3.pdf` → `lecture-3`; falls back to "Untitled"."""
    name = Path(filename or "").name
    if name.lower().endswith(".pdf"):
        name = name[:-4]
    return name.strip() or "Untitled"


class NoteService:
    """
    Business logic layer for document notes.

    Responsibilities:
        - list_notes(): the caller's notes, most recently updated first
        - create_note(): store the PDF and insert the row
        - rename_note(): change the title
        - delete_note(): delete the row, then the PDF
    """

    def __init__(self, files: Optional[FileService] = None):
        self._files = files

    @property
    def files(self) -> FileService:
        return self._files or default_file_service

    async def list_notes(
        self, db: AsyncSession, user_id: uuid.UUID, query: Optional[str] = None
    ) -> List[NoteOut]:
        """
        Query plan:
            SELECT * FROM notes WHERE user_id = :me [AND lower(title) LIKE :q]
            ORDER BY updated_at DESC
            → idx_notes_user_updated
        """
        stmt = select(Note).where(Note.user_id == user_id)
        term = (query or "").strip().lower()
        if term:
            stmt = stmt.where(func.lower(Note.title).contains(term, autoescape=True))
        stmt = stmt.order_by(Note.updated_at.desc())
        try:
            result = await db.execute(stmt)
        except SQLAlchemyError as e:
            raise store_error(e, "list notes")
        return [NoteOut.model_validate(note) for note in result.scalars().all()]

    async def _get_owned(self, db: AsyncSession, user_id: uuid.UUID, note_id: uuid.UUID) -> Note:
        try:
            result = await db.execute(
                select(Note).where(Note.id == note_id, Note.user_id == user_id)
            )
        except SQLAlchemyError as e:
            raise store_error(e, "get note")
        note = result.scalar_one_or_none()
        if note is None:
            raise NotFoundError(resource="note", resource_id=str(note_id))
        return note

    async def create_note(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        filename: str,
        content: bytes,
        content_length: Optional[int] = None,
        title: Optional[str] = None,
    ) -> NoteOut:
        """
        Complete workflow: validate → store PDF → insert row.

        Error Recovery:
            Validation fails → ValidationError (400), nothing stored
            Storage fails    → FileStorageError (500), nothing inserted
            Insert fails     → StoreError (500), stored PDF removed again
        """
        relative_path = await self.files.store_pdf(user_id, filename, content, content_length)

        note = Note(
            user_id=user_id,
            title=(title or "").strip() or default_title(filename),
            content="",
            pdf_url=public_url(relative_path),
            pdf_name=Path(filename).name,
        )
        try:
            db.add(note)
            await db.flush()
        except SQLAlchemyError as e:
            await self.files.remove(relative_path)
            raise store_error(e, "create note")

        logger.info("Note %s created for %s (%s)", note.id, user_id, relative_path)
        return NoteOut.model_validate(note)

    async def rename_note(
        self, db: AsyncSession, user_id: uuid.UUID, note_id: uuid.UUID, title: str
    ) -> NoteOut:
        note = await self._get_owned(db, user_id, note_id)
        note.title = title
        note.updated_at = datetime.now(timezone.utc)
        try:
            await db.flush()
        except SQLAlchemyError as e:
            raise store_error(e, "rename note")
        return NoteOut.model_validate(note)

    async def delete_note(self, db: AsyncSession, user_id: uuid.UUID, note_id: uuid.UUID) -> None:
        note = await self._get_owned(db, user_id, note_id)
        relative_path = relative_from_url(note.pdf_url)
        try:
            await db.delete(note)
            await db.flush()
        except SQLAlchemyError as e:
            raise store_error(e, "delete note")

        if relative_path:
            await self.files.remove(relative_path)
        logger.info("Note %s deleted by %s", note_id, user_id)


# ── Singleton Instance ────────────────────────────────────────────────────
note_service = NoteService()
