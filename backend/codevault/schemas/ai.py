"""
CodeVault Backend — AI Assistant Schemas
=========================================

What:  Contracts for POST /api/ai/analyze and POST /api/ai/chat.

`AnalyzeRequest.code` is a StrictStr: a JSON number or list is rejected with
400 instead of being coerced to text. The 200,000-character cap is enforced
in the route so it can answer 413 rather than a generic validation error.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field, StrictStr, field_validator

MAX_CODE_LENGTH = 200_000


class AnalyzeRequest(BaseModel):
    code: Optional[StrictStr] = None


class AnalysisResult(BaseModel):
    """
    Model-suggested metadata for a piece of code.

    A failed decode is still returned in this shape, populated with the
    ANALYSIS_FAILED placeholder values.
    """

    title: str = ""
    description: str = ""
    language: str = ""
    tags: List[str] = Field(default_factory=list)

    @field_validator("title", "description", "language", mode="before")
    @classmethod
    def coerce_text(cls, v):
        return "" if v is None else str(v)

    @field_validator("tags", mode="before")
    @classmethod
    def coerce_tags(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            return [v]
        return [str(tag) for tag in v]


class ChatMessage(BaseModel):
    role: Literal["user", "model"]
    content: str = Field(min_length=1)


class ChatRequest(BaseModel):
    messages: List[ChatMessage] = Field(min_length=1)

    @field_validator("messages")
    @classmethod
    def last_is_user(cls, v: List[ChatMessage]) -> List[ChatMessage]:
        if v[-1].role != "user":
            raise ValueError("the last message must come from the user")
        return v


class ChatResponse(BaseModel):
    reply: str
