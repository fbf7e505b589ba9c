"""
CodeVault Backend — Request Dependencies
=========================================

What:  FastAPI dependencies resolving the calling user from the
       `Authorization: Bearer <token>` header.
How:   The token is verified against the identity service on every request;
       nothing is cached locally.

    get_optional_user  → CurrentUser | None   (listing endpoints)
    get_current_user   → CurrentUser or 401    (everything that writes)

A malformed or rejected token is a 401 even on endpoints that accept
anonymous callers; only a missing header means "anonymous".
"""

from typing import Optional

from fastapi import Depends, Header

from codevault.exceptions import AuthenticationError
from codevault.schemas.auth import CurrentUser
from codevault.services.identity_service import IdentityService, get_identity_service


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization or not authorization.strip():
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationError(message="Authorization header must be 'Bearer <token>'")
    return token.strip()


async def get_optional_user(
    authorization: Optional[str] = Header(default=None),
    identity: IdentityService = Depends(get_identity_service),
) -> Optional[CurrentUser]:
    token = bearer_token(authorization)
    if token is None:
        return None
    return await identity.get_user(token)


async def get_current_user(
    user: Optional[CurrentUser] = Depends(get_optional_user),
) -> CurrentUser:
    if user is None:
        raise AuthenticationError(message="Not authenticated")
    return user
