"""
CodeVault Backend — Profile & Review Service Tests
===================================================
"""

from unittest.mock import patch

import pytest

from codevault.exceptions import ConflictError
from codevault.models.profile import Profile
from codevault.schemas.profile import ProfileUpdate
from codevault.schemas.review import ReviewCreate
from codevault.services.file_service import FileService
from codevault.services.profile_service import ProfileService
from codevault.services.review_service import review_service

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


class TestProfileService:
    @pytest.mark.asyncio
    async def test_missing_profile_is_empty(self, db_session, user, temp_storage):
        service = ProfileService(files=FileService(storage_root=temp_storage))

        profile = await service.get_profile(db_session, user.id)

        assert profile.id == user.id
        assert profile.username is None

    @pytest.mark.asyncio
    async def test_update_upserts(self, db_session, user, temp_storage):
        service = ProfileService(files=FileService(storage_root=temp_storage))

        await service.update_profile(db_session, user.id, ProfileUpdate(username="ada", full_name="Ada L"))
        updated = await service.update_profile(db_session, user.id, ProfileUpdate(username="ada_l"))

        assert updated.username == "ada_l"
        assert updated.full_name is None

    @pytest.mark.asyncio
    async def test_username_taken_by_someone_else_conflicts(self, db_session, user, other_user, temp_storage):
        db_session.add(Profile(id=other_user.id, username="linus"))
        await db_session.flush()
        service = ProfileService(files=FileService(storage_root=temp_storage))

        with pytest.raises(ConflictError):
            await service.update_profile(db_session, user.id, ProfileUpdate(username="linus"))

    @pytest.mark.asyncio
    async def test_avatar_url_is_versioned(self, db_session, user, temp_storage):
        service = ProfileService(files=FileService(storage_root=temp_storage))

        with patch.object(FileService, "validate_mime_type", return_value="image/png"):
            profile = await service.update_avatar(db_session, user.id, "me.png", PNG_BYTES)

        assert profile.avatar_url.startswith(f"/api/files/avatars/{user.id}/avatar?v=")

    def test_username_format_is_validated(self):
        with pytest.raises(ValueError):
            ProfileUpdate(username="no spaces allowed")


class TestReviewService:
    @pytest.mark.asyncio
    async def test_reviews_carry_author_username(self, db_session, user, other_user):
        db_session.add(Profile(id=user.id, username="ada"))
        await db_session.flush()

        await review_service.create_review(db_session, user.id, ReviewCreate(rating=5, content="Great tool"))
        await review_service.create_review(db_session, other_user.id, ReviewCreate(rating=3, content="Decent"))

        reviews = await review_service.list_reviews(db_session)

        by_content = {r.content: r for r in reviews}
        assert by_content["Great tool"].username == "ada"
        assert by_content["Decent"].username is None

    @pytest.mark.asyncio
    async def test_limit_is_applied(self, db_session, user):
        for n in range(3):
            await review_service.create_review(db_session, user.id, ReviewCreate(rating=4, content=f"r{n}"))

        assert len(await review_service.list_reviews(db_session, limit=2)) == 2

    def test_rating_range_is_validated(self):
        with pytest.raises(ValueError):
            ReviewCreate(rating=6, content="too good")
