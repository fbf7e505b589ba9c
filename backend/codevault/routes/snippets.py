"""
CodeVault Backend — Snippet Route Handlers
===========================================

What:  The snippet library API.

    GET    /api/snippets                 caller's snippets (filters below)
    GET    /api/snippets/public          other users' public snippets
    POST   /api/snippets                 create (201)
    GET    /api/snippets/{id}            one owned or public snippet
    PATCH  /api/snippets/{id}            partial update, optional tag replace
    DELETE /api/snippets/{id}            delete (204)
    PUT    /api/snippets/{id}/favorite   set the favorite flag

Filters (list endpoints):
    ?query=  substring of title, description or code (case-insensitive)
    ?language=  exact language
    ?tags=a&tags=b  or  ?tags=a,b   every tag must be present

Anonymous callers get [] from the list endpoints; every write needs a
bearer token.
"""

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from codevault.database import get_db_session
from codevault.dependencies import get_current_user, get_optional_user
from codevault.schemas.auth import CurrentUser
from codevault.schemas.common import ErrorResponse
from codevault.schemas.snippet import (
    FavoriteUpdate,
    SearchFilters,
    SnippetCreate,
    SnippetOut,
    SnippetUpdate,
)
from codevault.services.snippet_service import snippet_service

router = APIRouter(prefix="/api/snippets", tags=["Snippets"])

NOT_FOUND = {404: {"description": "Snippet not found or not yours", "model": ErrorResponse}}


def search_filters(
    query: Optional[str] = Query(default=None, description="Substring of title, description or code"),
    language: Optional[str] = Query(default=None),
    tags: List[str] = Query(default=[], description="Repeat or comma-separate tag names"),
) -> SearchFilters:
    names = [name.strip() for raw in tags for name in raw.split(",") if name.strip()]
    return SearchFilters(query=query, language=language, tags=names)


def _user_id(user: Optional[CurrentUser]) -> Optional[uuid.UUID]:
    return user.id if user is not None else None


@router.get("", response_model=List[SnippetOut], summary="List my snippets")
async def list_snippets(
    filters: SearchFilters = Depends(search_filters),
    user: Optional[CurrentUser] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[SnippetOut]:
    return await snippet_service.list_owned(db, _user_id(user), filters)


@router.get("/public", response_model=List[SnippetOut], summary="List other users' public snippets")
async def list_public_snippets(
    filters: SearchFilters = Depends(search_filters),
    user: Optional[CurrentUser] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[SnippetOut]:
    return await snippet_service.list_public(db, _user_id(user), filters)


@router.post(
    "",
    response_model=SnippetOut,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"description": "Title or code empty", "model": ErrorResponse}},
    summary="Create a snippet",
)
async def create_snippet(
    payload: SnippetCreate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> SnippetOut:
    return await snippet_service.create(db, user.id, payload)


@router.get("/{snippet_id}", response_model=SnippetOut, responses=NOT_FOUND, summary="Get a snippet")
async def get_snippet(
    snippet_id: uuid.UUID,
    user: Optional[CurrentUser] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db_session),
) -> SnippetOut:
    return await snippet_service.get(db, _user_id(user), snippet_id)


@router.patch("/{snippet_id}", response_model=SnippetOut, responses=NOT_FOUND, summary="Update a snippet")
async def update_snippet(
    snippet_id: uuid.UUID,
    payload: SnippetUpdate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> SnippetOut:
    return await snippet_service.update(db, user.id, snippet_id, payload)


@router.delete(
    "/{snippet_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=NOT_FOUND,
    summary="Delete a snippet",
)
async def delete_snippet(
    snippet_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await snippet_service.delete(db, user.id, snippet_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put(
    "/{snippet_id}/favorite",
    response_model=SnippetOut,
    responses=NOT_FOUND,
    summary="Mark or unmark a snippet as favorite",
)
async def set_favorite(
    snippet_id: uuid.UUID,
    payload: FavoriteUpdate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> SnippetOut:
    return await snippet_service.toggle_favorite(db, user.id, snippet_id, payload.is_favorite)
