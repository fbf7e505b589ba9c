"""
CodeVault Backend — Snippet Service (Access Layer)
===================================================

What:  CRUD for snippets plus tag association, with cached list queries.
How:   Async SQLAlchemy against the hosted store. Joined rows (snippet,
       author profile, tag links) are flattened into SnippetOut.
Who:   Called by the /api/snippets route handlers.

Ownership:
    Every write filters on `user_id == caller`. A snippet that exists but
    belongs to someone else is reported exactly like a missing one (404).

Atomicity:
    create/update run the snippet write and the tag-link writes on the
    request's session; get_db_session commits them together. A failure while
    linking tags rolls the snippet write back too.

Cache contract:
    Reads go through `query_cache` and hand out copies, so callers may mutate
    what they get. Every mutation queues an invalidation of the caller's
    `owned`, `public` and `tags` scopes that runs when the request's
    transaction ends (see query_cache.invalidate_on_commit).
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

from sqlalchemy import ColumnElement, delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from codevault.database import store_error
from codevault.exceptions import NotFoundError
from codevault.models.profile import Profile
from codevault.models.snippet import Snippet, SnippetTag, Tag
from codevault.schemas.snippet import (
    SearchFilters,
    SnippetCreate,
    SnippetOut,
    SnippetUpdate,
)
from codevault.schemas.tag import TagOut
from codevault.services import search
from codevault.services.query_cache import OWNED, PUBLIC, invalidate_on_commit, query_cache

logger = logging.getLogger(__name__)


def normalize_snippet_row(
    snippet: Snippet,
    username: Optional[str] = None,
    tags: Sequence[Tag] = (),
) -> SnippetOut:
    """Flatten a snippet row, its author's username and its linked tags into one entity."""
    out = SnippetOut.model_validate(snippet)
    out.tags = [TagOut.model_validate(tag) for tag in tags]
    out.username = username
    return out


def _detached(snippets: Sequence[SnippetOut]) -> List[SnippetOut]:
    return [snippet.model_copy(deep=True) for snippet in snippets]


class SnippetService:
    """
    Business logic layer for snippets.

    Responsibilities:
        - list_owned() / list_public(): filtered, cached listings
        - get(): one snippet the caller owns or that is public
        - create() / update() / delete() / toggle_favorite(): owner-only writes
    """

    # ── Queries ───────────────────────────────────────────────────────────

    async def _load_tags(
        self, db: AsyncSession, snippet_ids: Sequence[uuid.UUID]
    ) -> Dict[uuid.UUID, List[Tag]]:
        if not snippet_ids:
            return {}
        stmt = (
            select(SnippetTag.snippet_id, Tag)
            .join(Tag, Tag.id == SnippetTag.tag_id)
            .where(SnippetTag.snippet_id.in_(snippet_ids))
            .order_by(Tag.name)
        )
        by_snippet: Dict[uuid.UUID, List[Tag]] = {}
        for snippet_id, tag in (await db.execute(stmt)).all():
            by_snippet.setdefault(snippet_id, []).append(tag)
        return by_snippet

    async def _fetch(
        self,
        db: AsyncSession,
        conditions: Sequence[ColumnElement[bool]],
        with_profile: bool = True,
    ) -> List[SnippetOut]:
        """Run a snippet query (newest first) and normalize each row."""
        if with_profile:
            stmt = select(Snippet, Profile.username).outerjoin(
                Profile, Profile.id == Snippet.user_id
            )
        else:
            stmt = select(Snippet)
        stmt = stmt.where(*conditions).order_by(Snippet.created_at.desc())

        result = await db.execute(stmt)
        if with_profile:
            rows = [(snippet, username) for snippet, username in result.all()]
        else:
            rows = [(snippet, None) for snippet in result.scalars().all()]

        tags = await self._load_tags(db, [snippet.id for snippet, _ in rows])
        return [
            normalize_snippet_row(snippet, username, tags.get(snippet.id, []))
            for snippet, username in rows
        ]

    async def list_owned(
        self,
        db: AsyncSession,
        user_id: Optional[uuid.UUID],
        filters: Optional[SearchFilters] = None,
    ) -> List[SnippetOut]:
        """
        Snippets owned by the caller, newest first.

        Query plan:
            WHERE user_id = :me [AND (title|description|code ILIKE :q)] [AND language = :lang]
            → idx_snippets_user_created
        The tag filter is applied afterwards on the fetched rows.

        Returns [] for anonymous callers.
        """
        if user_id is None:
            return []

        key = search.filters_hash(filters)
        cached = query_cache.get(OWNED, user_id, key)
        if cached is not None:
            return _detached(cached)
        epoch = query_cache.epoch

        conditions = [Snippet.user_id == user_id, *search.build_conditions(filters)]
        try:
            snippets = await self._fetch(db, conditions)
        except SQLAlchemyError as e:
            raise store_error(e, "list owned snippets")

        snippets = search.filter_by_tags(snippets, search.normalize_filters(filters).get("tags", []))
        query_cache.set(OWNED, user_id, key, snippets, since=epoch)
        return _detached(snippets)

    async def list_public(
        self,
        db: AsyncSession,
        user_id: Optional[uuid.UUID],
        filters: Optional[SearchFilters] = None,
    ) -> List[SnippetOut]:
        """
        Public snippets of OTHER users, newest first.

        If the query joined with author profiles fails, the same query is
        re-run without the join (usernames come back null). Only a failure of
        that second query surfaces.
        """
        if user_id is None:
            return []

        key = search.filters_hash(filters)
        cached = query_cache.get(PUBLIC, user_id, key)
        if cached is not None:
            return _detached(cached)
        epoch = query_cache.epoch

        conditions = [
            Snippet.is_public.is_(True),
            Snippet.user_id != user_id,
            *search.build_conditions(filters),
        ]
        try:
            snippets = await self._fetch(db, conditions, with_profile=True)
        except SQLAlchemyError as e:
            logger.warning("Public snippet query with profile join failed, retrying without it: %s", e)
            # The failed statement aborts the transaction on Postgres
            await db.rollback()
            try:
                snippets = await self._fetch(db, conditions, with_profile=False)
            except SQLAlchemyError as fallback_error:
                raise store_error(fallback_error, "list public snippets")

        snippets = search.filter_by_tags(snippets, search.normalize_filters(filters).get("tags", []))
        query_cache.set(PUBLIC, user_id, key, snippets, since=epoch)
        return _detached(snippets)

    async def get(
        self, db: AsyncSession, user_id: Optional[uuid.UUID], snippet_id: uuid.UUID
    ) -> SnippetOut:
        """One snippet that the caller owns, or that is public."""
        visible = Snippet.is_public.is_(True)
        if user_id is not None:
            visible = visible | (Snippet.user_id == user_id)
        try:
            found = await self._fetch(db, [Snippet.id == snippet_id, visible])
        except SQLAlchemyError as e:
            raise store_error(e, "get snippet")
        if not found:
            raise NotFoundError(resource="snippet", resource_id=str(snippet_id))
        return found[0]

    async def _get_owned(
        self, db: AsyncSession, user_id: uuid.UUID, snippet_id: uuid.UUID
    ) -> SnippetOut:
        found = await self._fetch(db, [Snippet.id == snippet_id, Snippet.user_id == user_id])
        if not found:
            raise NotFoundError(resource="snippet", resource_id=str(snippet_id))
        return found[0]

    # ── Tag association ───────────────────────────────────────────────────

    async def _resolve_tags(
        self, db: AsyncSession, user_id: uuid.UUID, names: Sequence[str]
    ) -> List[Tag]:
        """Existing tags of this user whose names match (case-insensitive). Unknown names are dropped."""
        lowered = {name.strip().lower() for name in names if name and name.strip()}
        if not lowered:
            return []
        stmt = select(Tag).where(Tag.user_id == user_id, func.lower(Tag.name).in_(lowered))
        return list((await db.execute(stmt)).scalars().all())

    async def _link_tags(
        self, db: AsyncSession, user_id: uuid.UUID, snippet_id: uuid.UUID, names: Sequence[str]
    ) -> None:
        for tag in await self._resolve_tags(db, user_id, names):
            db.add(SnippetTag(snippet_id=snippet_id, tag_id=tag.id, user_id=user_id))
        await db.flush()

    # ── Mutations ─────────────────────────────────────────────────────────

    async def create(
        self, db: AsyncSession, user_id: uuid.UUID, data: SnippetCreate
    ) -> SnippetOut:
        """
        Insert a snippet and link it to the caller's existing tags.

        Workflow:
            1. INSERT the snippets row
            2. SELECT the caller's tags matching the requested names
            3. INSERT one snippet_tags row per resolved tag
        """
        snippet = Snippet(
            user_id=user_id,
            title=data.title,
            description=data.description,
            code=data.code,
            language=data.language,
            is_public=data.is_public,
        )
        invalidate_on_commit(db, user_id)
        try:
            db.add(snippet)
            await db.flush()
            if data.tags:
                await self._link_tags(db, user_id, snippet.id, data.tags)
            created = await self._get_owned(db, user_id, snippet.id)
        except SQLAlchemyError as e:
            raise store_error(e, "create snippet")

        logger.info("Snippet %s created by %s with %d tag(s)", snippet.id, user_id, len(created.tags))
        return created

    async def update(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        snippet_id: uuid.UUID,
        data: SnippetUpdate,
    ) -> SnippetOut:
        """
        Write the supplied fields and bump `updated_at`.

        A `tags` list in the payload replaces ALL associations with the
        resolved set; an empty list removes every tag.
        """
        changes = data.model_dump(exclude_unset=True, exclude={"tags"})
        changes = {field: value for field, value in changes.items() if value is not None or field == "description"}
        replace_tags = "tags" in data.model_fields_set and data.tags is not None

        invalidate_on_commit(db, user_id)
        try:
            result = await db.execute(
                update(Snippet)
                .where(Snippet.id == snippet_id, Snippet.user_id == user_id)
                .values(**changes, updated_at=datetime.now(timezone.utc))
            )
            if result.rowcount == 0:
                raise NotFoundError(resource="snippet", resource_id=str(snippet_id))

            if replace_tags:
                await db.execute(
                    delete(SnippetTag).where(
                        SnippetTag.snippet_id == snippet_id,
                        SnippetTag.user_id == user_id,
                    )
                )
                await self._link_tags(db, user_id, snippet_id, data.tags or [])

            # The bulk UPDATE bypassed the identity map
            db.expire_all()
            updated = await self._get_owned(db, user_id, snippet_id)
        except SQLAlchemyError as e:
            raise store_error(e, "update snippet")

        return updated

    async def delete(self, db: AsyncSession, user_id: uuid.UUID, snippet_id: uuid.UUID) -> None:
        """Delete an owned snippet; its tag links go with it (ON DELETE CASCADE)."""
        invalidate_on_commit(db, user_id)
        try:
            result = await db.execute(
                delete(Snippet).where(Snippet.id == snippet_id, Snippet.user_id == user_id)
            )
        except SQLAlchemyError as e:
            raise store_error(e, "delete snippet")

        if result.rowcount == 0:
            raise NotFoundError(resource="snippet", resource_id=str(snippet_id))
        logger.info("Snippet %s deleted by %s", snippet_id, user_id)

    async def toggle_favorite(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        snippet_id: uuid.UUID,
        is_favorite: bool,
    ) -> SnippetOut:
        invalidate_on_commit(db, user_id)
        try:
            result = await db.execute(
                update(Snippet)
                .where(Snippet.id == snippet_id, Snippet.user_id == user_id)
                .values(is_favorite=is_favorite)
            )
            if result.rowcount == 0:
                raise NotFoundError(resource="snippet", resource_id=str(snippet_id))
            db.expire_all()
            snippet = await self._get_owned(db, user_id, snippet_id)
        except SQLAlchemyError as e:
            raise store_error(e, "toggle favorite")
        return snippet


# ── Singleton Instance ────────────────────────────────────────────────────
snippet_service = SnippetService()
