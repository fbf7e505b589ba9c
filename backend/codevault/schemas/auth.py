"""
CodeVault Backend — Signup Schemas
===================================

All three fields are optional at the schema level so that a missing one
produces the single combined 400 message rather than a per-field error list.
"""

import uuid
from typing import Any, Dict, Optional

from pydantic import BaseModel


class SignupRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None
    username: Optional[str] = None


class SignupResponse(BaseModel):
    success: bool = True
    user: Dict[str, Any]


class CurrentUser(BaseModel):
    """The verified caller, as reported by the identity service."""

    id: uuid.UUID
    email: Optional[str] = None
    username: Optional[str] = None
