"""
CodeVault Backend — Note (Document) Schemas
============================================

What:  Pydantic models for the notes API.
Who:   Returned by the /api/notes routes; built from Note rows.

Schemas are separate from the SQLAlchemy model so the API can expose
`pdf_url` as a servable path while the table keeps whatever the storage
layer returned.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class NoteOut(BaseModel):
    """
    A document note.

    Why these fields:
        - pdf_url: frontend embeds it in the PDF viewer iframe
        - pdf_name: shown under the title in the sidebar list
        - updated_at: list ordering and "edited 2 hours ago" labels
    """

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID = Field(description="Unique note identifier (UUID)")
    user_id: uuid.UUID
    title: str
    content: str = ""
    pdf_url: Optional[str] = Field(default=None, description="Servable URL of the attached PDF")
    pdf_name: Optional[str] = Field(default=None, description="Original filename of the PDF")
    created_at: datetime = Field(description="When the note was created (UTC ISO 8601)")
    updated_at: datetime = Field(description="Last rename (UTC ISO 8601)")


class NoteRename(BaseModel):
    title: str = Field(max_length=255)

    @field_validator("title")
    @classmethod
    def non_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be empty")
        return v
