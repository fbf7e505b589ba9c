"""
CodeVault Backend — Recently Viewed (Learning) Tests
=====================================================

What we test:
    ✅ The list never exceeds 10 entries and keeps the newest first
    ✅ Re-viewing a video moves it to the front instead of duplicating it
    ✅ Anonymous sessions are isolated from each other
    ✅ The mirror keeps a bounded number of scopes, dropping the least recently touched
    ✅ Store failures: recording still succeeds, reading falls back to the mirror
    ✅ Signed-in views are upserted and trimmed in the store
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from codevault.models.recently_viewed import RecentlyViewed
from codevault.schemas.video import Video
from codevault.services.learning_service import MAX_RECENT, LearningService, scope_for


def _video(n: int) -> Video:
    return Video(id=f"vid{n}", title=f"Video {n}", duration="4:03", views="1.5M")


def _broken_session():
    db = MagicMock()
    db.execute = AsyncMock(side_effect=OperationalError("SELECT", {}, Exception("connection reset")))
    db.rollback = AsyncMock()
    return db


class TestScope:
    def test_user_scope_wins_over_session(self, user):
        assert scope_for(user.id, "abc") == f"user:{user.id}"

    def test_session_and_anonymous_scopes(self):
        assert scope_for(None, " abc ") == "session:abc"
        assert scope_for(None, None) == "anonymous"


class TestMirror:
    def setup_method(self):
        self.service = LearningService()

    @pytest.mark.asyncio
    async def test_capped_and_newest_first(self):
        for n in range(15):
            await self.service.record_view(None, None, _video(n), "s1")

        recent = await self.service.list_recent(None, None, "s1")

        assert len(recent) == MAX_RECENT
        assert recent[0].id == "vid14"
        assert recent[-1].id == "vid5"

    @pytest.mark.asyncio
    async def test_reviewed_video_moves_to_front(self):
        for n in (1, 2, 3):
            await self.service.record_view(None, None, _video(n), "s1")
        await self.service.record_view(None, None, _video(1), "s1")

        recent = await self.service.list_recent(None, None, "s1")

        assert [v.id for v in recent] == ["vid1", "vid3", "vid2"]
        assert self.service.last_viewed(scope_for(None, "s1")) == "vid1"

    @pytest.mark.asyncio
    async def test_sessions_are_isolated(self):
        await self.service.record_view(None, None, _video(1), "s1")

        assert await self.service.list_recent(None, None, "s2") == []

    @pytest.mark.asyncio
    async def test_remove_from_mirror(self):
        await self.service.record_view(None, None, _video(1), "s1")
        await self.service.remove(None, None, "vid1", "s1")

        assert await self.service.list_recent(None, None, "s1") == []

    @pytest.mark.asyncio
    async def test_scope_count_is_bounded(self):
        service = LearningService(max_scopes=3)
        for n in range(10):
            await service.record_view(None, None, _video(n), f"s{n}")

        assert len(service._recent) == 3
        assert len(service._last_viewed) == 3
        assert await service.list_recent(None, None, "s9") != []

    @pytest.mark.asyncio
    async def test_least_recently_touched_scope_is_evicted(self):
        service = LearningService(max_scopes=2)
        await service.record_view(None, None, _video(1), "s1")
        await service.record_view(None, None, _video(2), "s2")
        await service.record_view(None, None, _video(3), "s1")

        await service.record_view(None, None, _video(4), "s3")

        assert await service.list_recent(None, None, "s2") == []
        assert service.last_viewed(scope_for(None, "s2")) is None
        assert [v.id for v in await service.list_recent(None, None, "s1")] == ["vid3", "vid1"]


class TestStoreSync:
    def setup_method(self):
        self.service = LearningService()

    @pytest.mark.asyncio
    async def test_store_failure_does_not_fail_recording(self, user):
        db = _broken_session()

        recent = await self.service.record_view(db, user.id, _video(1))

        assert [v.id for v in recent] == ["vid1"]
        db.rollback.assert_awaited()

    @pytest.mark.asyncio
    async def test_read_falls_back_to_mirror(self, user):
        await self.service.record_view(_broken_session(), user.id, _video(7))

        recent = await self.service.list_recent(_broken_session(), user.id)

        assert [v.id for v in recent] == ["vid7"]

    @pytest.mark.asyncio
    async def test_signed_in_views_are_upserted_and_trimmed(self, db_session, user):
        for n in range(12):
            await self.service.record_view(db_session, user.id, _video(n))
        await self.service.record_view(db_session, user.id, _video(11))

        count = await db_session.execute(
            select(func.count()).select_from(RecentlyViewed).where(RecentlyViewed.user_id == user.id)
        )
        assert count.scalar_one() == MAX_RECENT

        self.service.clear()
        recent = await self.service.list_recent(db_session, user.id)
        assert recent[0].id == "vid11"
        assert recent[0].category == "Recently Viewed"
        assert "vid0" not in [v.id for v in recent]
