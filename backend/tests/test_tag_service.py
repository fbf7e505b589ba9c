"""
CodeVault Backend — Tag Service Tests
======================================
"""

import uuid

import pytest

from codevault.exceptions import NotFoundError
from codevault.schemas.snippet import SnippetCreate
from codevault.schemas.tag import DEFAULT_TAG_COLOR, TagCreate
from codevault.services.query_cache import query_cache
from codevault.services.snippet_service import snippet_service
from codevault.services.tag_service import tag_service


class TestTagService:
    @pytest.mark.asyncio
    async def test_list_is_per_user_and_sorted(self, db_session, user, other_user):
        await tag_service.create(db_session, user.id, TagCreate(name="zsh"))
        await tag_service.create(db_session, user.id, TagCreate(name="awk", color="#10B981"))
        await tag_service.create(db_session, other_user.id, TagCreate(name="mine-not"))

        tags = await tag_service.list(db_session, user.id)

        assert [t.name for t in tags] == ["awk", "zsh"]
        assert tags[0].color == "#10B981"
        assert tags[1].color == DEFAULT_TAG_COLOR

    @pytest.mark.asyncio
    async def test_list_is_cached_until_a_mutation(self, db_session, user):
        await tag_service.list(db_session, user.id)
        assert len(query_cache) == 1

        await tag_service.create(db_session, user.id, TagCreate(name="go"))
        assert len(query_cache) == 1
        await db_session.commit()

        assert len(query_cache) == 0
        assert [t.name for t in await tag_service.list(db_session, user.id)] == ["go"]

    @pytest.mark.asyncio
    async def test_cached_list_is_not_shared_with_callers(self, db_session, user):
        await tag_service.create(db_session, user.id, TagCreate(name="go"))
        await db_session.commit()

        first = await tag_service.list(db_session, user.id)
        first[0].name = "rust"
        first.append(first[0])

        assert [t.name for t in await tag_service.list(db_session, user.id)] == ["go"]

    @pytest.mark.asyncio
    async def test_delete_unlinks_tag_from_snippets(self, db_session, user):
        tag = await tag_service.create(db_session, user.id, TagCreate(name="rust"))
        snippet = await snippet_service.create(
            db_session, user.id, SnippetCreate(title="Ownership", code="let s = String::new();", tags=["rust"])
        )
        assert snippet.tag_names == ["rust"]

        await tag_service.delete(db_session, user.id, tag.id)

        refreshed = await snippet_service.get(db_session, user.id, snippet.id)
        assert refreshed.tags == []

    @pytest.mark.asyncio
    async def test_delete_foreign_tag_is_not_found(self, db_session, user, other_user):
        theirs = await tag_service.create(db_session, other_user.id, TagCreate(name="theirs"))

        with pytest.raises(NotFoundError):
            await tag_service.delete(db_session, user.id, theirs.id)

    @pytest.mark.asyncio
    async def test_delete_unknown_tag_is_not_found(self, db_session, user):
        with pytest.raises(NotFoundError):
            await tag_service.delete(db_session, user.id, uuid.uuid4())


class TestTagSchema:
    def test_blank_name_rejected(self):
        with pytest.raises(ValueError):
            TagCreate(name="   ")

    def test_color_must_be_hex(self):
        with pytest.raises(ValueError):
            TagCreate(name="ok", color="blue")
