"""
CodeVault Backend — Note Service Tests
=======================================

What we test:
    ✅ create_note(): PDF stored, row inserted, title defaults from filename
    ✅ Failed insert removes the stored PDF again
    ✅ list_notes(): own notes only, title filter, newest update first
    ✅ rename_note() / delete_note() ownership and file cleanup
"""

import uuid
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from codevault.exceptions import NotFoundError, StoreError, ValidationError
from codevault.services.file_service import FileService, relative_from_url
from codevault.services.note_service import NoteService, default_title

PDF_BYTES = b"%PDF-1.4\n1 0 obj\n<<>>\nendobj\n%%EOF\n"


@pytest.fixture
def notes(temp_storage):
    service = NoteService(files=FileService(storage_root=temp_storage))
    with patch.object(FileService, "validate_mime_type", return_value="application/pdf"):
        yield service


class TestDefaultTitle:
    @pytest.mark.parametrize(
        "filename,expected",
        [("lecture-3.pdf", "lecture-3"), ("Slides.PDF", "Slides"), (".pdf", "Untitled"), (None, "Untitled")],
    )
    def test_default_title(self, filename, expected):
        assert default_title(filename) == expected


class TestCreateNote:
    @pytest.mark.asyncio
    async def test_stores_pdf_and_inserts_row(self, notes, db_session, user, temp_storage):
        note = await notes.create_note(db_session, user.id, "week-1.pdf", PDF_BYTES)

        assert note.title == "week-1"
        assert note.pdf_name == "week-1.pdf"
        assert note.pdf_url.startswith(f"/api/files/{user.id}/")
        stored = Path(temp_storage) / relative_from_url(note.pdf_url)
        assert stored.read_bytes() == PDF_BYTES

    @pytest.mark.asyncio
    async def test_explicit_title_wins(self, notes, db_session, user):
        note = await notes.create_note(db_session, user.id, "scan.pdf", PDF_BYTES, title="  Algorithms  ")
        assert note.title == "Algorithms"

    @pytest.mark.asyncio
    async def test_non_pdf_rejected_before_storing(self, notes, db_session, user, temp_storage):
        with pytest.raises(ValidationError):
            await notes.create_note(db_session, user.id, "image.png", b"\x89PNG")
        assert list(Path(temp_storage).iterdir()) == []

    @pytest.mark.asyncio
    async def test_failed_insert_removes_stored_pdf(self, notes, user, temp_storage):
        db = MagicMock()
        db.flush = AsyncMock(side_effect=OperationalError("INSERT", {}, Exception("disk I/O error")))

        with pytest.raises(StoreError) as exc_info:
            await notes.create_note(db, user.id, "doomed.pdf", PDF_BYTES)

        assert exc_info.value.message == "disk I/O error"
        assert list((Path(temp_storage) / str(user.id)).iterdir()) == []


class TestListRenameDelete:
    @pytest.mark.asyncio
    async def test_list_is_own_notes_filtered_by_title(self, notes, db_session, user, other_user):
        await notes.create_note(db_session, user.id, "graphs.pdf", PDF_BYTES)
        await notes.create_note(db_session, user.id, "trees.pdf", PDF_BYTES)
        await notes.create_note(db_session, other_user.id, "graphs.pdf", PDF_BYTES)

        mine = await notes.list_notes(db_session, user.id)
        filtered = await notes.list_notes(db_session, user.id, "GRAPH")

        assert len(mine) == 2
        assert all(n.user_id == user.id for n in mine)
        assert [n.title for n in filtered] == ["graphs"]

    @pytest.mark.asyncio
    async def test_rename_moves_note_to_front(self, notes, db_session, user):
        first = await notes.create_note(db_session, user.id, "a.pdf", PDF_BYTES)
        await notes.create_note(db_session, user.id, "b.pdf", PDF_BYTES)

        renamed = await notes.rename_note(db_session, user.id, first.id, "Renamed")
        listed = await notes.list_notes(db_session, user.id)

        assert renamed.title == "Renamed"
        assert listed[0].id == first.id

    @pytest.mark.asyncio
    async def test_rename_foreign_note_not_found(self, notes, db_session, user, other_user):
        theirs = await notes.create_note(db_session, other_user.id, "x.pdf", PDF_BYTES)

        with pytest.raises(NotFoundError):
            await notes.rename_note(db_session, user.id, theirs.id, "Mine")

    @pytest.mark.asyncio
    async def test_delete_removes_row_and_file(self, notes, db_session, user, temp_storage):
        note = await notes.create_note(db_session, user.id, "gone.pdf", PDF_BYTES)
        stored = Path(temp_storage) / relative_from_url(note.pdf_url)

        await notes.delete_note(db_session, user.id, note.id)

        assert await notes.list_notes(db_session, user.id) == []
        assert not stored.exists()

    @pytest.mark.asyncio
    async def test_delete_unknown_note_not_found(self, notes, db_session, user):
        with pytest.raises(NotFoundError):
            await notes.delete_note(db_session, user.id, uuid.uuid4())
