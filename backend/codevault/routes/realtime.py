"""
CodeVault Backend — Realtime Change Webhook
============================================

What:  POST /api/realtime/changes receives row-change notifications from the
       hosted store and drops the affected user's cached list queries.
How:   The store's database webhook posts `{type, table, record, old_record}`
       with the shared secret in `X-Webhook-Secret`.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Header, status
from pydantic import BaseModel

from codevault.schemas.common import ErrorResponse
from codevault.services import realtime

router = APIRouter(prefix="/api/realtime", tags=["Realtime"])


class ChangeAck(BaseModel):
    invalidated: List[str]


@router.post(
    "/changes",
    response_model=ChangeAck,
    status_code=status.HTTP_202_ACCEPTED,
    responses={
        401: {"description": "Wrong webhook secret", "model": ErrorResponse},
        500: {"description": "Webhook secret not configured", "model": ErrorResponse},
    },
    summary="Apply a database change notification",
)
async def receive_change(
    payload: Dict[str, Any] = Body(...),
    x_webhook_secret: Optional[str] = Header(default=None),
) -> ChangeAck:
    realtime.verify_secret(x_webhook_secret)
    return ChangeAck(invalidated=realtime.handle_change(payload))
