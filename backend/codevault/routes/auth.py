"""
CodeVault Backend — Signup Route
=================================

What:  POST /api/auth/signup creates a pre-confirmed account through the
       identity provider's admin API.
Who:   The signup form. Sign-in itself happens directly against the
       identity provider; this backend only verifies the resulting tokens.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from codevault.database import get_db_session
from codevault.schemas.auth import SignupRequest, SignupResponse
from codevault.schemas.common import ErrorResponse
from codevault.services import auth_service
from codevault.services.identity_service import IdentityService, get_identity_service

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post(
    "/signup",
    response_model=SignupResponse,
    responses={
        400: {"description": "Missing field or identity provider error", "model": ErrorResponse},
        409: {"description": "Username already taken", "model": ErrorResponse},
        500: {"description": "Identity not configured or store error", "model": ErrorResponse},
    },
    summary="Create an account",
)
async def signup(
    payload: SignupRequest,
    db: AsyncSession = Depends(get_db_session),
    identity: IdentityService = Depends(get_identity_service),
) -> SignupResponse:
    result = await auth_service.signup(db, identity, payload)
    return SignupResponse(**result)
