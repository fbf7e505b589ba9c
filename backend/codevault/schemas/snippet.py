"""
CodeVault Backend — Snippet Request/Response Schemas
=====================================================

What:  Pydantic models for the snippet API contract.
How:   Joined store rows (snippet + author profile + tag links) are flattened
       into `SnippetOut` by SnippetService.normalize_snippet_row().

Validation:
    `title` and `code` must be non-blank on create. On update every field is
    optional; a supplied `tags` list (even empty) replaces all associations.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from codevault.schemas.tag import TagOut


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class SnippetOut(BaseModel):
    """A snippet with its tags flattened and the author's username attached."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    title: str
    description: Optional[str] = None
    code: str
    language: str
    is_favorite: bool = False
    is_public: bool = False
    created_at: datetime
    updated_at: datetime
    tags: List[TagOut] = Field(default_factory=list, description="Tags linked to this snippet")
    username: Optional[str] = Field(
        default=None,
        description="Author's username; null when the profile join was unavailable",
    )

    @property
    def tag_names(self) -> List[str]:
        return [tag.name for tag in self.tags]


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


def _strip_required(value: str) -> str:
    stripped = value.strip()
    if not stripped:
        raise ValueError("must not be empty")
    return stripped


class SnippetCreate(BaseModel):
    title: str = Field(max_length=255)
    description: Optional[str] = None
    code: str
    language: str = Field(default="plaintext", max_length=50)
    is_public: bool = False
    tags: List[str] = Field(default_factory=list, description="Tag names to link (case-insensitive)")

    @field_validator("title", "code")
    @classmethod
    def non_blank(cls, v: str) -> str:
        return _strip_required(v)

    @field_validator("language")
    @classmethod
    def default_language(cls, v: str) -> str:
        return v.strip() or "plaintext"


class SnippetUpdate(BaseModel):
    """
    Partial update. Only fields present in the request body are written;
    `tags=None` (absent) leaves associations untouched.
    """

    title: Optional[str] = Field(default=None, max_length=255)
    description: Optional[str] = None
    code: Optional[str] = None
    language: Optional[str] = Field(default=None, max_length=50)
    is_public: Optional[bool] = None
    tags: Optional[List[str]] = None

    @field_validator("title", "code")
    @classmethod
    def non_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return _strip_required(v)


class FavoriteUpdate(BaseModel):
    is_favorite: bool


class SearchFilters(BaseModel):
    """
    Filters accepted by the list endpoints.

    `query` is a substring matched against title, description and code;
    `language` is an exact match; `tags` must all be present on a result.
    """

    query: Optional[str] = None
    language: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
