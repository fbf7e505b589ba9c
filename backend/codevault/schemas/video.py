"""
CodeVault Backend — Learning Video Schemas
===========================================

What:  The flattened video card shared by the YouTube search proxy and the
       recently-viewed list.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Video(BaseModel):
    """
    Display-ready video metadata.

    `duration`, `views` and `likes` are already formatted strings
    ("1:02:05", "1.5M", "12.3K"); the frontend renders them as-is.
    """

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(min_length=1, max_length=64)
    title: str = ""
    thumbnail: Optional[str] = None
    channel: Optional[str] = None
    duration: Optional[str] = None
    views: Optional[str] = None
    likes: Optional[str] = None
    description: Optional[str] = None
    category: str = "YouTube"


class RecentVideo(Video):
    viewed_at: Optional[datetime] = None


class LastViewed(BaseModel):
    video_id: Optional[str] = None


class Repository(BaseModel):
    """A flattened GitHub repository search hit."""

    id: int
    name: str
    full_name: str
    description: Optional[str] = None
    url: str
    stars: int = 0
    forks: int = 0
    language: Optional[str] = None
    owner: Optional[str] = None
    owner_avatar: Optional[str] = None
    updated_at: Optional[str] = None
