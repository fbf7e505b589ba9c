"""
CodeVault Backend — Profile Route Handlers
===========================================

What:  The caller's own profile and avatar.

    GET  /api/profile          profile, or an empty one before the first save
    PUT  /api/profile          {username, full_name?}; 409 on a taken username
    POST /api/profile/avatar   multipart `file`: PNG or JPEG, at most 2 MB
"""

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from codevault.database import get_db_session
from codevault.dependencies import get_current_user
from codevault.schemas.auth import CurrentUser
from codevault.schemas.common import ErrorResponse
from codevault.schemas.profile import ProfileOut, ProfileUpdate
from codevault.services.profile_service import profile_service

router = APIRouter(prefix="/api/profile", tags=["Profile"])


@router.get("", response_model=ProfileOut, summary="My profile")
async def get_profile(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ProfileOut:
    return await profile_service.get_profile(db, user.id)


@router.put(
    "",
    response_model=ProfileOut,
    responses={409: {"description": "Username already taken", "model": ErrorResponse}},
    summary="Update my profile",
)
async def update_profile(
    payload: ProfileUpdate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ProfileOut:
    return await profile_service.update_profile(db, user.id, payload)


@router.post(
    "/avatar",
    response_model=ProfileOut,
    responses={400: {"description": "Not a PNG/JPEG or larger than 2 MB", "model": ErrorResponse}},
    summary="Upload a profile picture",
)
async def upload_avatar(
    file: UploadFile = File(...),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ProfileOut:
    content = await file.read()
    return await profile_service.update_avatar(
        db, user.id, file.filename or "", content, content_length=file.size
    )
