"""
CodeVault Backend — Query Cache Unit Tests
===========================================

What we test:
    ✅ get/set round trip keyed by (resource, user, filters)
    ✅ Expiry after the TTL
    ✅ invalidate() drops the user's scopes and every public entry
    ✅ TTL of 0 disables caching
    ✅ A result read before an invalidation is not stored
    ✅ Writes sweep expired entries
    ✅ invalidate_on_commit() runs when the transaction commits or rolls back
"""

import uuid
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy import select

from codevault.services.query_cache import (
    OWNED,
    PENDING_INVALIDATIONS,
    PUBLIC,
    TAGS,
    QueryCache,
    invalidate_on_commit,
    query_cache,
)


class TestQueryCache:
    def setup_method(self):
        self.cache = QueryCache(ttl=60)
        self.alice = uuid.uuid4()
        self.bob = uuid.uuid4()

    def test_get_returns_stored_value(self):
        self.cache.set(OWNED, self.alice, "h1", ["snippet"])
        assert self.cache.get(OWNED, self.alice, "h1") == ["snippet"]

    def test_keys_are_separated_by_user_and_filters(self):
        self.cache.set(OWNED, self.alice, "h1", ["a"])
        assert self.cache.get(OWNED, self.bob, "h1") is None
        assert self.cache.get(OWNED, self.alice, "h2") is None

    def test_entry_expires_after_ttl(self):
        with patch("codevault.services.query_cache.time.monotonic", return_value=1000.0):
            self.cache.set(TAGS, self.alice, "all", ["tag"])
        with patch("codevault.services.query_cache.time.monotonic", return_value=1061.0):
            assert self.cache.get(TAGS, self.alice, "all") is None
        assert len(self.cache) == 0

    def test_invalidate_drops_owned_and_tags_for_user_only(self):
        self.cache.set(OWNED, self.alice, "h", [1])
        self.cache.set(TAGS, self.alice, "all", [2])
        self.cache.set(OWNED, self.bob, "h", [3])

        removed = self.cache.invalidate(self.alice, [OWNED, TAGS])

        assert removed == 2
        assert self.cache.get(OWNED, self.alice, "h") is None
        assert self.cache.get(OWNED, self.bob, "h") == [3]

    def test_invalidate_public_drops_every_users_public_feed(self):
        self.cache.set(PUBLIC, self.alice, "h", [1])
        self.cache.set(PUBLIC, self.bob, "h", [2])

        self.cache.invalidate(self.alice, [PUBLIC])

        assert len(self.cache) == 0

    def test_zero_ttl_disables_caching(self):
        cache = QueryCache(ttl=0)
        cache.set(OWNED, self.alice, "h", [1])
        assert cache.get(OWNED, self.alice, "h") is None

    def test_result_read_before_an_invalidation_is_not_stored(self):
        epoch = self.cache.epoch
        self.cache.invalidate(self.alice, [OWNED])

        assert self.cache.set(OWNED, self.alice, "h", ["stale"], since=epoch) is False
        assert self.cache.get(OWNED, self.alice, "h") is None

    def test_result_with_current_epoch_is_stored(self):
        assert self.cache.set(OWNED, self.alice, "h", ["fresh"], since=self.cache.epoch) is True
        assert self.cache.get(OWNED, self.alice, "h") == ["fresh"]

    def test_purge_expired_keeps_live_entries(self):
        with patch("codevault.services.query_cache.time.monotonic", return_value=1000.0):
            self.cache.set(OWNED, self.alice, "old", [1])
        with patch("codevault.services.query_cache.time.monotonic", return_value=1050.0):
            self.cache.set(OWNED, self.alice, "new", [2])
        with patch("codevault.services.query_cache.time.monotonic", return_value=1070.0):
            removed = self.cache.purge_expired()

        assert removed == 1
        assert len(self.cache) == 1

    def test_writes_sweep_entries_that_are_never_read_again(self):
        with patch("codevault.services.query_cache.time.monotonic", return_value=1000.0):
            for n in range(QueryCache.PURGE_EVERY - 1):
                self.cache.set(OWNED, self.alice, f"query-{n}", [n])
        assert len(self.cache) == QueryCache.PURGE_EVERY - 1

        with patch("codevault.services.query_cache.time.monotonic", return_value=1061.0):
            self.cache.set(OWNED, self.alice, "latest", ["x"])

            assert self.cache.get(OWNED, self.alice, "latest") == ["x"]

        assert len(self.cache) == 1


class TestInvalidateOnCommit:
    @pytest.mark.asyncio
    async def test_runs_after_commit(self, session_factory):
        alice = uuid.uuid4()
        query_cache.set(OWNED, alice, "h", [1])

        async with session_factory() as session:
            await session.execute(select(1))
            invalidate_on_commit(session, alice)
            assert len(query_cache) == 1

            await session.commit()

        assert len(query_cache) == 0
        assert PENDING_INVALIDATIONS not in session.info

    @pytest.mark.asyncio
    async def test_runs_after_rollback(self, session_factory):
        alice = uuid.uuid4()
        query_cache.set(TAGS, alice, "all", [1])

        async with session_factory() as session:
            await session.execute(select(1))
            invalidate_on_commit(session, alice, [TAGS])

            await session.rollback()

        assert len(query_cache) == 0

    def test_queues_on_session_info(self):
        alice = uuid.uuid4()
        db = MagicMock()
        db.info = {}

        invalidate_on_commit(db, alice, [TAGS])

        assert db.info[PENDING_INVALIDATIONS] == [(alice, (TAGS,))]
