"""
CodeVault Backend — Notes Route Handlers
=========================================

What:  Document notes with an attached PDF, plus serving of stored files.

    GET    /api/notes?q=        caller's notes, most recently updated first
    POST   /api/notes           multipart upload: `file` (PDF), optional `title`
    PATCH  /api/notes/{id}      rename
    DELETE /api/notes/{id}      delete row, then the PDF (best-effort)
    GET    /api/files/{path}    stored PDFs and avatars

Caching:
    Stored objects are served with `Cache-Control: private`. Avatars change
    in place, so their URLs carry a `?v=` version instead.
"""

import logging
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from codevault.database import get_db_session
from codevault.dependencies import get_current_user, get_optional_user
from codevault.schemas.auth import CurrentUser
from codevault.schemas.common import ErrorResponse
from codevault.schemas.note import NoteOut, NoteRename
from codevault.services.file_service import FileService, get_file_service
from codevault.services.note_service import note_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Notes"])

NOT_FOUND = {404: {"description": "Note not found or not yours", "model": ErrorResponse}}


@router.get("/notes", response_model=List[NoteOut], summary="List my notes")
async def list_notes(
    q: Optional[str] = Query(default=None, description="Case-insensitive title filter"),
    user: Optional[CurrentUser] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[NoteOut]:
    if user is None:
        return []
    return await note_service.list_notes(db, user.id, q)


@router.post(
    "/notes",
    response_model=NoteOut,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Not a PDF, empty, or too large", "model": ErrorResponse},
        500: {"description": "Storage or store failure", "model": ErrorResponse},
    },
    summary="Upload a PDF as a new note",
)
async def create_note(
    file: UploadFile = File(..., description="PDF document"),
    title: Optional[str] = Form(default=None),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> NoteOut:
    content = await file.read()
    return await note_service.create_note(
        db,
        user.id,
        filename=file.filename or "",
        content=content,
        content_length=file.size,
        title=title,
    )


@router.patch("/notes/{note_id}", response_model=NoteOut, responses=NOT_FOUND, summary="Rename a note")
async def rename_note(
    note_id: uuid.UUID,
    payload: NoteRename,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> NoteOut:
    return await note_service.rename_note(db, user.id, note_id, payload.title)


@router.delete(
    "/notes/{note_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=NOT_FOUND,
    summary="Delete a note and its PDF",
)
async def delete_note(
    note_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await note_service.delete_note(db, user.id, note_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/files/{file_path:path}",
    responses={
        200: {"description": "Stored file"},
        400: {"description": "Path escapes storage", "model": ErrorResponse},
        404: {"description": "File not found", "model": ErrorResponse},
    },
    summary="Serve a stored PDF or avatar",
)
async def serve_file(
    file_path: str,
    files: FileService = Depends(get_file_service),
) -> FileResponse:
    path = files.open_path(file_path)
    return FileResponse(
        path=str(path),
        media_type=files.media_type(path),
        headers={"Cache-Control": "private, max-age=3600"},
    )
