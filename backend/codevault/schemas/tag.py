"""
CodeVault Backend — Tag Schemas
================================
"""

import uuid

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_TAG_COLOR = "#3B82F6"


class TagOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    color: str = DEFAULT_TAG_COLOR


class TagCreate(BaseModel):
    name: str = Field(max_length=64)
    color: str = Field(default=DEFAULT_TAG_COLOR, pattern=r"^#[0-9A-Fa-f]{3,8}$")

    @field_validator("name")
    @classmethod
    def non_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be empty")
        return v
