"""
CodeVault Backend — Learning Service (Recently Viewed Videos)
==============================================================

What:  Keeps the "recently viewed" list for the learning zone.
How:   Two tiers per scope (a user id, or an anonymous X-Session-ID):
         1. an in-process mirror, written first and always available
         2. the `recently_viewed` table, for signed-in users only
Who:   Called by the /api/learning route handlers.

Both tiers hold at most MAX_RECENT entries, most recent first. A re-viewed
video moves to the front instead of appearing twice.

The mirror is keyed by a client-chosen session id, so it is bounded: past
MAX_MIRROR_SCOPES scopes the least recently touched one is dropped. For a
signed-in user that only loses the fallback copy; the store still has it.

Failure policy:
    Recording a view never fails the request: a store error is logged and the
    mirror still has the entry. Reading falls back to the mirror on a store
    error. Removing an entry surfaces store errors.
"""

import logging
import uuid
from collections import OrderedDict
from datetime import datetime, timezone
from typing import Dict, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from codevault.database import store_error
from codevault.models.recently_viewed import RecentlyViewed
from codevault.schemas.video import RecentVideo, Video

logger = logging.getLogger(__name__)

MAX_RECENT = 10
# Scopes (users or anonymous sessions) the mirror keeps; least recently used go first
MAX_MIRROR_SCOPES = 5000
ANONYMOUS_SCOPE = "anonymous"


def scope_for(user_id: Optional[uuid.UUID], session_id: Optional[str] = None) -> str:
    if user_id is not None:
        return f"user:{user_id}"
    if session_id and session_id.strip():
        return f"session:{session_id.strip()}"
    return ANONYMOUS_SCOPE


def _from_row(row: RecentlyViewed) -> RecentVideo:
    return RecentVideo(
        id=row.video_id,
        title=row.title,
        thumbnail=row.thumbnail,
        channel=row.channel,
        duration=row.duration,
        views=row.views,
        likes=row.likes,
        description=row.description,
        category="Recently Viewed",
        viewed_at=row.viewed_at,
    )


class LearningService:
    def __init__(self, max_scopes: int = MAX_MIRROR_SCOPES):
        self.max_scopes = max_scopes
        self._recent: "OrderedDict[str, List[RecentVideo]]" = OrderedDict()
        self._last_viewed: Dict[str, str] = {}

    # ── Local mirror ──────────────────────────────────────────────────────

    def local_recent(self, scope: str) -> List[RecentVideo]:
        return list(self._recent.get(scope, []))

    def last_viewed(self, scope: str) -> Optional[str]:
        return self._last_viewed.get(scope)

    def _put(self, scope: str, videos: List[RecentVideo]) -> None:
        self._recent[scope] = videos[:MAX_RECENT]
        self._recent.move_to_end(scope)
        while len(self._recent) > self.max_scopes:
            evicted, _ = self._recent.popitem(last=False)
            self._last_viewed.pop(evicted, None)

    def _remember(self, scope: str, video: RecentVideo) -> None:
        others = [v for v in self._recent.get(scope, []) if v.id != video.id]
        self._put(scope, [video, *others])
        self._last_viewed[scope] = video.id

    def _forget(self, scope: str, video_id: str) -> None:
        if scope in self._recent:
            self._put(scope, [v for v in self._recent[scope] if v.id != video_id])

    def clear(self) -> None:
        self._recent.clear()
        self._last_viewed.clear()

    # ── Operations ────────────────────────────────────────────────────────

    async def list_recent(
        self,
        db: AsyncSession,
        user_id: Optional[uuid.UUID],
        session_id: Optional[str] = None,
    ) -> List[RecentVideo]:
        """
        Recently viewed videos for the scope.

        Signed-in callers read the store; a non-empty store list also
        refreshes the mirror. Anonymous callers and store failures get the
        mirror.
        """
        scope = scope_for(user_id, session_id)
        if user_id is None:
            return self.local_recent(scope)

        try:
            result = await db.execute(
                select(RecentlyViewed)
                .where(RecentlyViewed.user_id == user_id)
                .order_by(RecentlyViewed.viewed_at.desc())
                .limit(MAX_RECENT)
            )
            rows = result.scalars().all()
        except SQLAlchemyError as e:
            logger.warning("Recently viewed fetch failed, using local mirror: %s", e)
            await db.rollback()
            return self.local_recent(scope)

        videos = [_from_row(row) for row in rows]
        if videos:
            self._put(scope, videos)
        return videos

    async def record_view(
        self,
        db: AsyncSession,
        user_id: Optional[uuid.UUID],
        video: Video,
        session_id: Optional[str] = None,
    ) -> List[RecentVideo]:
        """
        Record that a video was opened.

        Flow:
            1. Mirror: move to front, cap at MAX_RECENT, remember last viewed id
            2. Store (signed-in only): upsert on (user_id, video_id) refreshing
               viewed_at, then trim rows beyond the MAX_RECENT newest

        Returns:
            The mirror list after the update.
        """
        scope = scope_for(user_id, session_id)
        now = datetime.now(timezone.utc)
        self._remember(scope, RecentVideo(**video.model_dump(exclude={"viewed_at"}), viewed_at=now))

        if user_id is not None:
            try:
                await self._upsert(db, user_id, video, now)
            except SQLAlchemyError as e:
                logger.warning("Recently viewed sync failed for %s: %s", user_id, e)
                await db.rollback()

        return self.local_recent(scope)

    async def _upsert(
        self, db: AsyncSession, user_id: uuid.UUID, video: Video, viewed_at: datetime
    ) -> None:
        result = await db.execute(
            select(RecentlyViewed).where(
                RecentlyViewed.user_id == user_id,
                RecentlyViewed.video_id == video.id,
            )
        )
        row = result.scalar_one_or_none()
        if row is None:
            row = RecentlyViewed(user_id=user_id, video_id=video.id)
            db.add(row)

        row.title = video.title
        row.thumbnail = video.thumbnail
        row.channel = video.channel
        row.duration = video.duration
        row.views = video.views
        row.likes = video.likes
        row.description = video.description
        row.viewed_at = viewed_at
        await db.flush()

        overflow = (
            select(RecentlyViewed.id)
            .where(RecentlyViewed.user_id == user_id)
            .order_by(RecentlyViewed.viewed_at.desc())
            .offset(MAX_RECENT)
        )
        stale_ids = list((await db.execute(overflow)).scalars().all())
        if stale_ids:
            await db.execute(delete(RecentlyViewed).where(RecentlyViewed.id.in_(stale_ids)))
            await db.flush()

    async def remove(
        self,
        db: AsyncSession,
        user_id: Optional[uuid.UUID],
        video_id: str,
        session_id: Optional[str] = None,
    ) -> None:
        scope = scope_for(user_id, session_id)
        self._forget(scope, video_id)
        if user_id is None:
            return
        try:
            await db.execute(
                delete(RecentlyViewed).where(
                    RecentlyViewed.user_id == user_id,
                    RecentlyViewed.video_id == video_id,
                )
            )
        except SQLAlchemyError as e:
            raise store_error(e, "delete recently viewed")


# ── Singleton Instance ────────────────────────────────────────────────────
learning_service = LearningService()
