"""
CodeVault Backend — Realtime Change Notifications
==================================================

What:  Turns database-webhook payloads into query cache invalidations.
How:   The hosted store POSTs `{type, table, record, old_record}` for every
       INSERT/UPDATE/DELETE on the watched tables. The owning user is read
       from `record.user_id` (or `old_record.user_id` for deletes) and that
       user's snippet-related cache scopes are dropped.
Who:   Called by POST /api/realtime/changes.
"""

import hmac
import logging
from typing import Any, Dict, List, Optional

from codevault.config import FEATURE_REQUIREMENTS, settings
from codevault.exceptions import AuthenticationError, ConfigurationError
from codevault.services.query_cache import ALL_RESOURCES, query_cache

logger = logging.getLogger(__name__)

WATCHED_TABLES = {"snippets", "snippet_tags", "tags"}


def verify_secret(provided: Optional[str]) -> None:
    expected = settings.realtime_webhook_secret.strip()
    if not expected:
        raise ConfigurationError(
            message="Realtime webhook secret is not configured",
            remediation=FEATURE_REQUIREMENTS["realtime"]["realtime_webhook_secret"],
        )
    if not provided or not hmac.compare_digest(provided.encode(), expected.encode()):
        raise AuthenticationError(message="Invalid webhook secret")


def owner_of(payload: Dict[str, Any]) -> Optional[str]:
    for key in ("record", "old_record"):
        row = payload.get(key) or {}
        if isinstance(row, dict) and row.get("user_id"):
            return str(row["user_id"])
    return None


def handle_change(payload: Dict[str, Any]) -> List[str]:
    """
    Apply one change notification.

    Returns:
        The cache scopes invalidated; empty for unwatched tables or payloads
        without an owner.
    """
    table = payload.get("table")
    if table not in WATCHED_TABLES:
        return []
    user_id = owner_of(payload)
    if user_id is None:
        logger.debug("Change on %s without user_id ignored", table)
        return []
    query_cache.invalidate(user_id, ALL_RESOURCES)
    logger.info("Realtime %s on %s invalidated caches for %s", payload.get("type"), table, user_id)
    return list(ALL_RESOURCES)
