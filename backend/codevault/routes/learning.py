"""
CodeVault Backend — Learning Route Handlers
============================================

What:  The recently viewed videos list and the last viewed video.

    GET    /api/learning/recent
    POST   /api/learning/recent              body: Video
    DELETE /api/learning/recent/{video_id}
    GET    /api/learning/last-viewed

Scope:
    Signed-in callers are scoped by user id and synced to the store.
    Anonymous callers pass `X-Session-ID` to keep their own in-memory list.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Header, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from codevault.database import get_db_session
from codevault.dependencies import get_optional_user
from codevault.schemas.auth import CurrentUser
from codevault.schemas.video import LastViewed, RecentVideo, Video
from codevault.services.learning_service import learning_service, scope_for

router = APIRouter(prefix="/api/learning", tags=["Learning"])


def _user_id(user: Optional[CurrentUser]):
    return user.id if user is not None else None


@router.get("/recent", response_model=List[RecentVideo], summary="Recently viewed videos")
async def list_recent(
    x_session_id: Optional[str] = Header(default=None),
    user: Optional[CurrentUser] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[RecentVideo]:
    return await learning_service.list_recent(db, _user_id(user), x_session_id)


@router.post("/recent", response_model=List[RecentVideo], summary="Record a video view")
async def record_view(
    video: Video,
    x_session_id: Optional[str] = Header(default=None),
    user: Optional[CurrentUser] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[RecentVideo]:
    return await learning_service.record_view(db, _user_id(user), video, x_session_id)


@router.delete(
    "/recent/{video_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove a video from the list",
)
async def remove_recent(
    video_id: str,
    x_session_id: Optional[str] = Header(default=None),
    user: Optional[CurrentUser] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await learning_service.remove(db, _user_id(user), video_id, x_session_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/last-viewed", response_model=LastViewed, summary="Last opened video id")
async def last_viewed(
    x_session_id: Optional[str] = Header(default=None),
    user: Optional[CurrentUser] = Depends(get_optional_user),
) -> LastViewed:
    scope = scope_for(_user_id(user), x_session_id)
    return LastViewed(video_id=learning_service.last_viewed(scope))
