"""
CodeVault Backend — File Storage Service Tests
===============================================

What:  Upload validation, storage layout, serving and removal.
How:   Real files under a per-test temporary directory. MIME sniffing is
       patched out; libmagic is a system library outside the test's control.
"""

import uuid
from pathlib import Path
from unittest.mock import patch

import pytest

from codevault.exceptions import NotFoundError, ValidationError
from codevault.services.file_service import (
    PDF_EXTENSIONS,
    FileService,
    public_url,
    relative_from_url,
    safe_filename,
)

PDF_BYTES = b"%PDF-1.4\n%\xe2\xe3\xcf\xd3\n1 0 obj\n<<>>\nendobj\ntrailer\n<<>>\n%%EOF\n"
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


class TestValidation:
    def setup_method(self):
        self.service = FileService(storage_root=None)

    def test_extension_check_is_case_insensitive(self):
        assert self.service.validate_extension("Lecture.PDF", PDF_EXTENSIONS) == ".pdf"

    def test_wrong_extension_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            self.service.validate_extension("notes.docx", PDF_EXTENSIONS)
        assert "not supported" in exc_info.value.message

    def test_reported_size_over_limit_rejected(self):
        with pytest.raises(ValidationError):
            self.service.validate_size(content_length=2048, actual_size=10, max_size=1024)

    def test_actual_size_over_limit_rejected(self):
        with pytest.raises(ValidationError):
            self.service.validate_size(content_length=None, actual_size=2048, max_size=1024)

    def test_empty_file_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            self.service.validate_size(content_length=None, actual_size=0, max_size=1024)
        assert exc_info.value.message == "The uploaded file is empty."


class TestNaming:
    def test_non_ascii_and_separators_are_stripped(self):
        assert safe_filename("résumé/../notes.pdf") == "notes.pdf"
        assert safe_filename("日本語.pdf") == "pdf"

    def test_empty_name_falls_back(self):
        assert safe_filename("") == "document.pdf"

    def test_public_url_round_trip(self):
        url = public_url("u/1-a.pdf")
        assert url == "/api/files/u/1-a.pdf"
        assert relative_from_url(url + "?v=3") == "u/1-a.pdf"
        assert relative_from_url("https://elsewhere/x.pdf") is None


class TestStorage:
    @pytest.mark.asyncio
    async def test_store_pdf_layout(self, temp_storage):
        service = FileService(storage_root=temp_storage)
        user_id = uuid.uuid4()

        with patch.object(FileService, "validate_mime_type", return_value="application/pdf"):
            relative = await service.store_pdf(user_id, "Lecture 1.pdf", PDF_BYTES)

        owner, name = relative.split("/")
        assert owner == str(user_id)
        timestamp, _, original = name.partition("-")
        assert timestamp.isdigit()
        assert original == "Lecture 1.pdf"
        assert (Path(temp_storage) / relative).read_bytes() == PDF_BYTES

    @pytest.mark.asyncio
    async def test_store_avatar_overwrites_previous(self, temp_storage):
        service = FileService(storage_root=temp_storage)
        user_id = uuid.uuid4()

        with patch.object(FileService, "validate_mime_type", return_value="image/png"):
            first = await service.store_avatar(user_id, "me.png", PNG_BYTES)
            second = await service.store_avatar(user_id, "me-again.png", PNG_BYTES + b"\x01")

        assert first == second == f"avatars/{user_id}/avatar"
        assert service.open_path(second).read_bytes().endswith(b"\x01")

    def test_path_traversal_rejected(self, temp_storage):
        service = FileService(storage_root=temp_storage)
        with pytest.raises(ValidationError):
            service.resolve("../../etc/passwd")

    def test_missing_file_not_found(self, temp_storage):
        service = FileService(storage_root=temp_storage)
        with pytest.raises(NotFoundError):
            service.open_path("nobody/missing.pdf")

    @pytest.mark.asyncio
    async def test_remove_is_best_effort(self, temp_storage):
        service = FileService(storage_root=temp_storage)
        await service.write("u/doc.pdf", PDF_BYTES)

        assert await service.remove("u/doc.pdf") is True
        assert await service.remove("u/doc.pdf") is False
        assert await service.remove("../outside.pdf") is False
