"""
CodeVault Backend — Repository Search Route
============================================

What:  GET /api/github/search?q=...&language=... returns the most starred
       matching repositories.
"""

from typing import List

from fastapi import APIRouter, Depends, Query

from codevault.exceptions import ValidationError
from codevault.schemas.common import ErrorResponse
from codevault.schemas.video import Repository
from codevault.services.github_service import GitHubService, get_github_service
from codevault.services.youtube_service import MAX_QUERY_LENGTH

router = APIRouter(prefix="/api/github", tags=["Learning"])


@router.get(
    "/search",
    response_model=List[Repository],
    responses={
        400: {"description": "Over-long query", "model": ErrorResponse},
        500: {"description": "GitHub failed", "model": ErrorResponse},
    },
    summary="Search repositories by topic and language",
)
async def search_repositories(
    q: str = Query(default=""),
    language: str = Query(default="javascript"),
    github: GitHubService = Depends(get_github_service),
) -> List[Repository]:
    if len(q) > MAX_QUERY_LENGTH:
        raise ValidationError(message='Query parameter "q" too long', field="q")
    return await github.search_repositories(q.strip(), language.strip() or "javascript")
