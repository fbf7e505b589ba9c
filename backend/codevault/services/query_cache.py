"""
CodeVault Backend — Query Result Cache
=======================================

What:  In-process cache of list query results with explicit invalidation.
Why:   List endpoints are hit on every page focus; re-querying the store each
       time is wasteful when nothing changed.
How:   Entries are keyed by (resource, user_id, filters_hash). Mutations
       queue an invalidation on their session with `invalidate_on_commit()`;
       it runs when that transaction ends, so a concurrent reader can never
       re-cache pre-commit rows after the drop. Realtime notifications call
       `invalidate()` directly. Entries older than QUERY_CACHE_TTL seconds are
       treated as absent.
Who:   SnippetService, TagService and the realtime receiver.

Resources:
    owned   — the caller's own snippets
    public  — public snippets of other users (spans owners)
    tags    — the caller's tag list

Invalidating `public` drops public entries for EVERY user: a snippet made
public by user A appears in user B's public list.

Read/invalidate race:
    Readers take `epoch` before querying and pass it to `set()`. Any
    invalidation in between bumps the epoch and the now-stale result is
    not stored.

Memory:
    Expired entries are swept every PURGE_EVERY writes, so one entry per
    distinct filter combination lives at most QUERY_CACHE_TTL seconds.

The dict is only touched from the event loop, so no locking is needed.
"""

import logging
import time
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import event
from sqlalchemy.orm import Session

from codevault.config import settings

logger = logging.getLogger(__name__)

OWNED = "owned"
PUBLIC = "public"
TAGS = "tags"
ALL_RESOURCES = (OWNED, PUBLIC, TAGS)

# Session.info key holding invalidations queued by the current transaction
PENDING_INVALIDATIONS = "codevault.pending_invalidations"

CacheKey = Tuple[str, str, str]


class QueryCache:
    """Explicit-invalidation cache with a staleness bound."""

    PURGE_EVERY = 200

    def __init__(self, ttl: Optional[float] = None):
        self._ttl = ttl
        self._entries: Dict[CacheKey, Tuple[float, Any]] = {}
        self._epoch = 0
        self._writes = 0

    @property
    def ttl(self) -> float:
        return settings.query_cache_ttl if self._ttl is None else self._ttl

    @property
    def epoch(self) -> int:
        """Bumped by every invalidation; see set(since=...)."""
        return self._epoch

    @staticmethod
    def _key(resource: str, user_id: Any, filters_hash: str) -> CacheKey:
        return (resource, str(user_id or ""), filters_hash)

    def get(self, resource: str, user_id: Any, filters_hash: str) -> Optional[Any]:
        key = self._key(resource, user_id, filters_hash)
        entry = self._entries.get(key)
        if entry is None:
            return None
        stored_at, value = entry
        if time.monotonic() - stored_at > self.ttl:
            del self._entries[key]
            return None
        return value

    def set(
        self,
        resource: str,
        user_id: Any,
        filters_hash: str,
        value: Any,
        since: Optional[int] = None,
    ) -> bool:
        """
        Store a query result.

        Args:
            since: The `epoch` read before the query ran. When an invalidation
                   happened in the meantime the result is discarded.

        Returns:
            True when the value was stored.
        """
        if self.ttl <= 0:
            return False
        if since is not None and since != self._epoch:
            logger.debug("Discarding %s result for %s: invalidated while querying", resource, user_id)
            return False

        self._writes += 1
        if self._writes % self.PURGE_EVERY == 0:
            self.purge_expired()

        self._entries[self._key(resource, user_id, filters_hash)] = (time.monotonic(), value)
        return True

    def purge_expired(self) -> int:
        """Drop every entry older than the TTL. Returns the number removed."""
        cutoff = time.monotonic() - self.ttl
        expired = [key for key, (stored_at, _) in self._entries.items() if stored_at < cutoff]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug("Purged %d expired cache entries", len(expired))
        return len(expired)

    def invalidate(self, user_id: Any, resources: Iterable[str] = ALL_RESOURCES) -> int:
        """
        Drop cached entries for a user.

        Args:
            user_id:   Owner whose `owned`/`tags` entries are dropped
            resources: Which resource scopes to drop

        Returns:
            Number of entries removed.
        """
        self._epoch += 1
        scopes = set(resources)
        uid = str(user_id or "")
        stale = [
            key
            for key in self._entries
            if key[0] in scopes and (key[0] == PUBLIC or key[1] == uid)
        ]
        for key in stale:
            del self._entries[key]
        if stale:
            logger.debug("Invalidated %d cache entries for user %s (%s)", len(stale), uid, sorted(scopes))
        return len(stale)

    def clear(self) -> None:
        self._entries.clear()
        self._epoch += 1

    def __len__(self) -> int:
        return len(self._entries)


# ── Singleton Instance ────────────────────────────────────────────────────
query_cache = QueryCache()


# ── Transaction-bound invalidation ────────────────────────────────────────

def invalidate_on_commit(db: Any, user_id: Any, resources: Iterable[str] = ALL_RESOURCES) -> None:
    """
    Queue an invalidation of the user's scopes on the session `db`.

    It runs after the transaction commits. It also runs after a rollback: a
    list served from the same session may have cached rows that never
    reached the store.
    """
    pending: List[Tuple[Any, Tuple[str, ...]]] = db.info.setdefault(PENDING_INVALIDATIONS, [])
    pending.append((user_id, tuple(resources)))


def _run_pending(session: Session) -> None:
    pending = session.info.pop(PENDING_INVALIDATIONS, None)
    for user_id, resources in pending or ():
        query_cache.invalidate(user_id, resources)


@event.listens_for(Session, "after_commit")
def _invalidate_after_commit(session: Session) -> None:
    _run_pending(session)


@event.listens_for(Session, "after_rollback")
def _invalidate_after_rollback(session: Session) -> None:
    _run_pending(session)
