"""
CodeVault Backend — Review Route Handlers
==========================================

What:  Public product reviews. Anyone can read; posting needs a sign-in.
"""

from typing import List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from codevault.database import get_db_session
from codevault.dependencies import get_current_user
from codevault.schemas.auth import CurrentUser
from codevault.schemas.review import ReviewCreate, ReviewOut
from codevault.services.review_service import review_service

router = APIRouter(prefix="/api/reviews", tags=["Reviews"])


@router.get("", response_model=List[ReviewOut], summary="Newest reviews")
async def list_reviews(
    limit: int = Query(default=20, ge=1, le=100),
    db: AsyncSession = Depends(get_db_session),
) -> List[ReviewOut]:
    return await review_service.list_reviews(db, limit)


@router.post("", response_model=ReviewOut, status_code=status.HTTP_201_CREATED, summary="Post a review")
async def create_review(
    payload: ReviewCreate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ReviewOut:
    return await review_service.create_review(db, user.id, payload)
