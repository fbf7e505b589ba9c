"""
CodeVault Backend — Tag Service
================================

What:  List/create/delete for the caller's tags.
Who:   Called by the /api/tags route handlers.

Tags are user-scoped and not de-duplicated: creating "React" twice yields two
rows. Deleting a tag removes its snippet links through ON DELETE CASCADE, so
snippet listings change as well; every mutation therefore invalidates the
`owned` and `public` scopes along with `tags`, once the transaction ends.
"""

import logging
import uuid
from typing import List

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from codevault.database import store_error
from codevault.exceptions import NotFoundError
from codevault.models.snippet import Tag
from codevault.schemas.tag import TagCreate, TagOut
from codevault.services.query_cache import TAGS, invalidate_on_commit, query_cache

logger = logging.getLogger(__name__)

# Tag lists are not filtered, so they share one cache key per user
_UNFILTERED = "all"


class TagService:
    async def list(self, db: AsyncSession, user_id: uuid.UUID) -> List[TagOut]:
        """The caller's tags ordered by name."""
        cached = query_cache.get(TAGS, user_id, _UNFILTERED)
        if cached is not None:
            return [tag.model_copy() for tag in cached]
        epoch = query_cache.epoch
        try:
            result = await db.execute(
                select(Tag).where(Tag.user_id == user_id).order_by(Tag.name)
            )
        except SQLAlchemyError as e:
            raise store_error(e, "list tags")
        tags = [TagOut.model_validate(tag) for tag in result.scalars().all()]
        query_cache.set(TAGS, user_id, _UNFILTERED, tags, since=epoch)
        return [tag.model_copy() for tag in tags]

    async def create(self, db: AsyncSession, user_id: uuid.UUID, data: TagCreate) -> TagOut:
        tag = Tag(user_id=user_id, name=data.name, color=data.color)
        invalidate_on_commit(db, user_id)
        try:
            db.add(tag)
            await db.flush()
        except SQLAlchemyError as e:
            raise store_error(e, "create tag")
        logger.info("Tag '%s' created by %s", tag.name, user_id)
        return TagOut.model_validate(tag)

    async def delete(self, db: AsyncSession, user_id: uuid.UUID, tag_id: uuid.UUID) -> None:
        invalidate_on_commit(db, user_id)
        try:
            result = await db.execute(
                delete(Tag).where(Tag.id == tag_id, Tag.user_id == user_id)
            )
        except SQLAlchemyError as e:
            raise store_error(e, "delete tag")
        if result.rowcount == 0:
            raise NotFoundError(resource="tag", resource_id=str(tag_id))


# ── Singleton Instance ────────────────────────────────────────────────────
tag_service = TagService()
