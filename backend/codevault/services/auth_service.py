"""
CodeVault Backend — Signup Service
===================================

What:  Account creation: username uniqueness check, then admin user creation.
Who:   Called by POST /api/auth/signup.

Workflow:
    1. All of email/password/username present      → else 400
    2. No profile already uses the username         → else 409
    3. Identity provider creates a confirmed user   → provider error → 400
    4. Return {success: true, user}

The `profiles` row itself is created by a trigger in the hosted store when the
identity user is inserted; this service never writes to `profiles`.
"""

import logging
from typing import Any, Dict

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from codevault.exceptions import ConflictError, StoreError, ValidationError
from codevault.models.profile import Profile
from codevault.schemas.auth import SignupRequest
from codevault.services.identity_service import IdentityService

logger = logging.getLogger(__name__)


async def username_taken(db: AsyncSession, username: str) -> bool:
    try:
        result = await db.execute(select(Profile.id).where(Profile.username == username).limit(1))
    except SQLAlchemyError as e:
        logger.error("Error checking profiles: %s", e)
        raise StoreError(message="Database error checking username.")
    return result.first() is not None


async def signup(db: AsyncSession, identity: IdentityService, data: SignupRequest) -> Dict[str, Any]:
    if not data.email or not data.password or not data.username:
        raise ValidationError(message="Email, password, and username are required.")

    identity.ensure_configured()

    if await username_taken(db, data.username):
        raise ConflictError(message="This username is already taken.")

    user = await identity.create_user(data.email, data.password, data.username)
    logger.info("User %s signed up as '%s'", user.get("id"), data.username)
    return {"success": True, "user": user}
