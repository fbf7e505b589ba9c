"""
CodeVault Backend — Review Service
===================================

What:  Newest-first listing and creation of product reviews.
"""

import logging
import uuid
from typing import List

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from codevault.database import store_error
from codevault.models.profile import Profile
from codevault.models.review import Review
from codevault.schemas.review import ReviewCreate, ReviewOut

logger = logging.getLogger(__name__)


def _with_author(review: Review, username) -> ReviewOut:
    out = ReviewOut.model_validate(review)
    out.username = username
    return out


class ReviewService:
    async def list_reviews(self, db: AsyncSession, limit: int = 20) -> List[ReviewOut]:
        stmt = (
            select(Review, Profile.username)
            .outerjoin(Profile, Profile.id == Review.user_id)
            .order_by(Review.created_at.desc())
            .limit(limit)
        )
        try:
            rows = (await db.execute(stmt)).all()
        except SQLAlchemyError as e:
            raise store_error(e, "list reviews")
        return [_with_author(review, username) for review, username in rows]

    async def create_review(
        self, db: AsyncSession, user_id: uuid.UUID, data: ReviewCreate
    ) -> ReviewOut:
        review = Review(user_id=user_id, rating=data.rating, content=data.content)
        try:
            db.add(review)
            await db.flush()
            username = (
                await db.execute(select(Profile.username).where(Profile.id == user_id))
            ).scalar_one_or_none()
        except SQLAlchemyError as e:
            raise store_error(e, "create review")
        logger.info("Review %s (%d stars) posted by %s", review.id, review.rating, user_id)
        return _with_author(review, username)


# ── Singleton Instance ────────────────────────────────────────────────────
review_service = ReviewService()
