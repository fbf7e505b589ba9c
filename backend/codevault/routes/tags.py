"""
CodeVault Backend — Tag Route Handlers
=======================================

What:  GET/POST /api/tags and DELETE /api/tags/{id}. Tags are per user.
"""

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from codevault.database import get_db_session
from codevault.dependencies import get_current_user, get_optional_user
from codevault.schemas.auth import CurrentUser
from codevault.schemas.common import ErrorResponse
from codevault.schemas.tag import TagCreate, TagOut
from codevault.services.tag_service import tag_service

router = APIRouter(prefix="/api/tags", tags=["Tags"])


@router.get("", response_model=List[TagOut], summary="List my tags")
async def list_tags(
    user: Optional[CurrentUser] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[TagOut]:
    if user is None:
        return []
    return await tag_service.list(db, user.id)


@router.post("", response_model=TagOut, status_code=status.HTTP_201_CREATED, summary="Create a tag")
async def create_tag(
    payload: TagCreate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> TagOut:
    return await tag_service.create(db, user.id, payload)


@router.delete(
    "/{tag_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"description": "Tag not found", "model": ErrorResponse}},
    summary="Delete a tag and its snippet links",
)
async def delete_tag(
    tag_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await tag_service.delete(db, user.id, tag_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
