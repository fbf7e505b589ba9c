"""
CodeVault Backend — Video Search Route
=======================================

What:  GET /api/youtube/search?q=... proxies a YouTube course search so the
       API key never reaches the browser.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from codevault.exceptions import ValidationError
from codevault.schemas.common import ErrorResponse
from codevault.schemas.video import Video
from codevault.services.youtube_service import (
    MAX_QUERY_LENGTH,
    YouTubeService,
    get_youtube_service,
)

router = APIRouter(prefix="/api/youtube", tags=["Learning"])


@router.get(
    "/search",
    response_model=List[Video],
    responses={
        400: {"description": "Missing or over-long query", "model": ErrorResponse},
        500: {"description": "Key missing or YouTube failed", "model": ErrorResponse},
    },
    summary="Search course videos",
)
async def search_videos(
    q: Optional[str] = Query(default=None, description="Search terms"),
    youtube: YouTubeService = Depends(get_youtube_service),
) -> List[Video]:
    if not q:
        raise ValidationError(message='Query parameter "q" is required', field="q")
    if len(q) > MAX_QUERY_LENGTH:
        raise ValidationError(message='Query parameter "q" too long', field="q")
    return await youtube.search(q)
