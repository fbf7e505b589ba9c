"""
CodeVault Backend — Profile Service
====================================

What:  Read and upsert the caller's public profile; store their avatar.
Who:   Called by the /api/profile route handlers.

Username uniqueness is checked here so a clash answers 409 with a readable
message instead of surfacing the store's unique-constraint text.
"""

import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from codevault.database import store_error
from codevault.exceptions import ConflictError
from codevault.models.profile import Profile
from codevault.schemas.profile import ProfileOut, ProfileUpdate
from codevault.services.file_service import (
    FileService,
    file_service as default_file_service,
    public_url,
)

logger = logging.getLogger(__name__)


class ProfileService:
    def __init__(self, files: Optional[FileService] = None):
        self._files = files

    @property
    def files(self) -> FileService:
        return self._files or default_file_service

    async def _load(self, db: AsyncSession, user_id: uuid.UUID) -> Optional[Profile]:
        try:
            result = await db.execute(select(Profile).where(Profile.id == user_id))
        except SQLAlchemyError as e:
            raise store_error(e, "get profile")
        return result.scalar_one_or_none()

    async def get_profile(self, db: AsyncSession, user_id: uuid.UUID) -> ProfileOut:
        """The caller's profile, or an empty one when no row exists yet."""
        profile = await self._load(db, user_id)
        if profile is None:
            return ProfileOut(id=user_id)
        return ProfileOut.model_validate(profile)

    async def update_profile(
        self, db: AsyncSession, user_id: uuid.UUID, data: ProfileUpdate
    ) -> ProfileOut:
        try:
            clash = await db.execute(
                select(Profile.id).where(Profile.username == data.username, Profile.id != user_id).limit(1)
            )
        except SQLAlchemyError as e:
            raise store_error(e, "check username")
        if clash.first() is not None:
            raise ConflictError(message="This username is already taken.")

        profile = await self._load(db, user_id)
        if profile is None:
            profile = Profile(id=user_id)
            db.add(profile)
        profile.username = data.username
        profile.full_name = data.full_name
        profile.updated_at = datetime.now(timezone.utc)
        try:
            await db.flush()
        except SQLAlchemyError as e:
            raise store_error(e, "update profile")
        return ProfileOut.model_validate(profile)

    async def update_avatar(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        filename: str,
        content: bytes,
        content_length: Optional[int] = None,
    ) -> ProfileOut:
        """
        Store the picture (overwriting the previous one) and point avatar_url at it.

        The URL carries a version query so browsers drop the cached image.
        """
        relative_path = await self.files.store_avatar(user_id, filename, content, content_length)
        avatar_url = f"{public_url(relative_path)}?v={int(time.time())}"

        profile = await self._load(db, user_id)
        if profile is None:
            profile = Profile(id=user_id)
            db.add(profile)
        profile.avatar_url = avatar_url
        profile.updated_at = datetime.now(timezone.utc)
        try:
            await db.flush()
        except SQLAlchemyError as e:
            raise store_error(e, "update avatar")
        logger.info("Avatar updated for %s", user_id)
        return ProfileOut.model_validate(profile)


# ── Singleton Instance ────────────────────────────────────────────────────
profile_service = ProfileService()
