"""
CodeVault Backend — File Storage Service
=========================================

What:  Validates, stores, serves and removes uploaded objects (note PDFs and
       profile avatars).
How:   Validates extension, size and MIME type, then writes under
       STORAGE_ROOT with aiofiles.
Who:   Called by NoteService, ProfileService and the /api/files route.

Object layout:
    storage/
    ├── <user_id>/
    │   └── 1718000000000-lecture-notes.pdf     (note PDFs)
    └── avatars/
        └── <user_id>/
            └── avatar                          (overwritten on each upload)

Security Model:
    1. Extension check:   fast rejection before reading the payload
    2. Size check:        Content-Length first, then the actual byte count
    3. MIME type check:   python-magic inspects the header bytes
    4. ASCII filenames:   non-ASCII characters and path separators are stripped
    5. Path resolution:   every read/delete is resolved and must stay inside
                          STORAGE_ROOT (no "../" escapes)
"""

import logging
import re
import time
import uuid
from pathlib import Path
from typing import Dict, Optional

import aiofiles

from codevault.config import settings
from codevault.exceptions import FileStorageError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

FILES_URL_PREFIX = "/api/files/"

# ── Allowed File Types ────────────────────────────────────────────────────
PDF_MIME_TYPES: Dict[str, str] = {"application/pdf": ".pdf"}
PDF_EXTENSIONS = {".pdf"}

AVATAR_MIME_TYPES: Dict[str, str] = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
}
AVATAR_EXTENSIONS = {".png", ".jpg", ".jpeg"}

_UNSAFE_NAME_CHARS = re.compile(r"[^\x20-\x7E]|[\\/]")


def safe_filename(filename: str, fallback: str = "document.pdf") -> str:
    """Drop non-ASCII characters and path separators from a client-supplied name."""
    cleaned = _UNSAFE_NAME_CHARS.sub("", Path(filename or "").name).strip().lstrip(".")
    return cleaned or fallback


def public_url(relative_path: str) -> str:
    return f"{FILES_URL_PREFIX}{relative_path}"


def relative_from_url(url: Optional[str]) -> Optional[str]:
    """Inverse of public_url(); None for URLs this service did not issue."""
    if not url or not url.startswith(FILES_URL_PREFIX):
        return None
    return url[len(FILES_URL_PREFIX):].split("?", 1)[0]


class FileService:
    """
    Manages upload validation and the storage lifecycle.

    Lifecycle of an uploaded PDF:
        1. NoteService passes the multipart payload to store_pdf()
        2. Extension, size and MIME checks (cheapest first)
        3. Written to <user_id>/<ms-timestamp>-<ascii-name>
        4. Relative path returned; the note row keeps public_url(path)
        5. On note deletion remove() deletes it, best-effort
    """

    def __init__(self, storage_root: Optional[str] = None):
        """
        Args:
            storage_root: Override the default storage path (used in tests).
        """
        self.storage_root = Path(storage_root or settings.storage_root).resolve()
        self.storage_root.mkdir(parents=True, exist_ok=True)
        logger.info("FileService initialized with storage_root=%s", self.storage_root)

    # ── Validation ────────────────────────────────────────────────────────

    def validate_extension(self, filename: str, allowed: set) -> str:
        """Returns the normalized (lowercase, dotted) extension or raises ValidationError."""
        ext = Path(filename or "").suffix.lower()
        if ext not in allowed:
            raise ValidationError(
                message=(
                    f"File type '{ext or filename}' is not supported. "
                    f"Allowed types: {', '.join(sorted(allowed))}"
                ),
                field="file",
                context={"extension": ext, "allowed": sorted(allowed)},
            )
        return ext

    def validate_size(self, content_length: Optional[int], actual_size: int, max_size: int) -> None:
        """
        Check the Content-Length header (when sent) and the real byte count.

        Raises:
            ValidationError with a human-readable size limit message
        """
        max_mb = max_size / (1024 * 1024)

        if content_length and content_length > max_size:
            raise ValidationError(
                message=f"File size exceeds maximum of {max_mb:.0f}MB. Please upload a smaller file.",
                field="file",
                context={"max_size_mb": max_mb, "reported_size": content_length},
            )

        if actual_size > max_size:
            raise ValidationError(
                message=f"File size ({actual_size / (1024 * 1024):.1f}MB) exceeds maximum of {max_mb:.0f}MB.",
                field="file",
                context={"max_size_mb": max_mb, "actual_size": actual_size},
            )

        if actual_size == 0:
            raise ValidationError(message="The uploaded file is empty.", field="file")

    def validate_mime_type(self, file_content: bytes, allowed: Dict[str, str]) -> str:
        """
        Detect the MIME type from the content's magic bytes.

        Returns:
            Detected MIME type string (e.g., "application/pdf")

        Raises:
            ValidationError if the type is not in `allowed`
            FileStorageError if detection itself fails
        """
        import magic

        try:
            mime_type = magic.from_buffer(file_content[:2048], mime=True)
        except magic.MagicException as e:
            logger.error("MIME type detection failed: %s", e)
            raise FileStorageError(
                message="Could not verify file type. Please try again.",
                context={"error": str(e)},
            )

        if mime_type not in allowed:
            raise ValidationError(
                message=(
                    f"File content type '{mime_type}' is not supported. "
                    f"Expected: {', '.join(sorted(allowed))}."
                ),
                field="file",
                context={"detected_mime": mime_type, "allowed": sorted(allowed)},
            )
        return mime_type

    # ── Paths ─────────────────────────────────────────────────────────────

    def resolve(self, relative_path: str) -> Path:
        """Absolute path of a stored object; rejects anything escaping the storage root."""
        candidate = (self.storage_root / relative_path).resolve()
        if candidate == self.storage_root or self.storage_root not in candidate.parents:
            raise ValidationError(message="Invalid file path", field="path")
        return candidate

    def pdf_path(self, user_id: uuid.UUID, filename: str) -> str:
        timestamp = int(time.time() * 1000)
        return f"{user_id}/{timestamp}-{safe_filename(filename)}"

    @staticmethod
    def avatar_path(user_id: uuid.UUID) -> str:
        return f"avatars/{user_id}/avatar"

    # ── Storage ───────────────────────────────────────────────────────────

    async def write(self, relative_path: str, content: bytes) -> Path:
        """
        Write bytes to a relative path, replacing any existing object.

        Raises:
            FileStorageError if directory creation or the write fails.
        """
        absolute_path = self.resolve(relative_path)
        try:
            absolute_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(absolute_path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store file at %s: %s", absolute_path, e)
            raise FileStorageError(
                message="Failed to save uploaded file. Please try again.",
                context={"path": relative_path, "os_error": str(e)},
            )
        logger.info("File stored: %s (%d bytes)", relative_path, len(content))
        return absolute_path

    async def store_pdf(
        self,
        user_id: uuid.UUID,
        filename: str,
        content: bytes,
        content_length: Optional[int] = None,
    ) -> str:
        """
        Validate and store a note PDF.

        Validation order (cheapest first):
            1. Extension  2. Size (MAX_PDF_SIZE)  3. MIME type

        Returns:
            Relative path of the stored object.
        """
        self.validate_extension(filename, PDF_EXTENSIONS)
        self.validate_size(content_length, len(content), settings.max_pdf_size)
        self.validate_mime_type(content, PDF_MIME_TYPES)

        relative_path = self.pdf_path(user_id, filename)
        await self.write(relative_path, content)
        return relative_path

    async def store_avatar(
        self,
        user_id: uuid.UUID,
        filename: str,
        content: bytes,
        content_length: Optional[int] = None,
    ) -> str:
        """Validate and store (upsert) a profile picture. PNG/JPEG, MAX_AVATAR_SIZE."""
        self.validate_extension(filename, AVATAR_EXTENSIONS)
        self.validate_size(content_length, len(content), settings.max_avatar_size)
        self.validate_mime_type(content, AVATAR_MIME_TYPES)

        relative_path = self.avatar_path(user_id)
        await self.write(relative_path, content)
        return relative_path

    def open_path(self, relative_path: str) -> Path:
        """Resolve a stored object for serving; NotFoundError when it does not exist."""
        path = self.resolve(relative_path)
        if not path.is_file():
            raise NotFoundError(resource="file")
        return path

    def media_type(self, path: Path) -> str:
        """Content type for serving. Avatars are stored without an extension."""
        import magic

        try:
            return magic.from_file(str(path), mime=True)
        except magic.MagicException as e:
            logger.warning("MIME detection failed for %s: %s", path, e)
            return "application/octet-stream"

    async def remove(self, relative_path: str) -> bool:
        """
        Delete a stored object.

        Best-effort: a missing file or an OS error is logged and reported as
        False, never raised. Note deletion has already succeeded by the time
        this runs.
        """
        try:
            path = self.resolve(relative_path)
        except ValidationError:
            logger.warning("Refusing to remove path outside storage: %s", relative_path)
            return False
        try:
            path.unlink()
        except FileNotFoundError:
            logger.debug("Cleanup: file already gone: %s", relative_path)
            return False
        except OSError as e:
            logger.warning("Failed to remove file %s: %s", relative_path, e)
            return False
        logger.info("Removed file: %s", relative_path)
        return True


# ── Singleton Instance ────────────────────────────────────────────────────
file_service = FileService()


def get_file_service() -> FileService:
    return file_service
