"""
CodeVault Backend — Search / Filter Composition
================================================

What:  Turns SearchFilters into (a) SQL clauses evaluated by the store and
       (b) a tag post-filter evaluated in Python on the fetched rows.
Why:   Tag membership lives in a join table; filtering on "has ALL of these
       tags" in SQL needs a GROUP BY/HAVING per request. Per-user result sets
       are small, so the superset check runs after the query instead.

Composition order:
    1. substring filter (title | description | code, case-insensitive) → SQL
    2. language filter (exact)                                         → SQL
    3. tag filter (superset, case-insensitive)                          → Python
"""

import hashlib
import json
from typing import Any, Dict, Iterable, List, Optional, Sequence

from sqlalchemy import ColumnElement, or_

from codevault.models.snippet import Snippet
from codevault.schemas.snippet import SearchFilters


def normalize_filters(filters: Optional[SearchFilters]) -> Dict[str, Any]:
    """
    Canonical form used for hashing and querying.

    Strings are trimmed and dropped when empty; tags are lower-cased,
    de-duplicated and sorted so that equivalent requests share a cache key.
    """
    if filters is None:
        return {}
    canonical: Dict[str, Any] = {}
    query = (filters.query or "").strip()
    if query:
        canonical["query"] = query
    language = (filters.language or "").strip()
    if language:
        canonical["language"] = language
    tags = sorted({tag.strip().lower() for tag in filters.tags if tag and tag.strip()})
    if tags:
        canonical["tags"] = tags
    return canonical


def filters_hash(filters: Optional[SearchFilters]) -> str:
    payload = json.dumps(normalize_filters(filters), sort_keys=True, separators=(",", ":"))
    return hashlib.sha1(payload.encode("utf-8")).hexdigest()


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def build_conditions(filters: Optional[SearchFilters]) -> List[ColumnElement[bool]]:
    """SQL clauses for the server-side part of the filter (query and language)."""
    canonical = normalize_filters(filters)
    conditions: List[ColumnElement[bool]] = []

    if "query" in canonical:
        pattern = f"%{_escape_like(canonical['query'])}%"
        conditions.append(
            or_(
                Snippet.title.ilike(pattern, escape="\\"),
                Snippet.description.ilike(pattern, escape="\\"),
                Snippet.code.ilike(pattern, escape="\\"),
            )
        )

    if "language" in canonical:
        conditions.append(Snippet.language == canonical["language"])

    return conditions


def _tag_names(snippet: Any) -> Iterable[str]:
    tags = snippet.get("tags", []) if isinstance(snippet, dict) else getattr(snippet, "tags", [])
    for tag in tags or []:
        name = tag.get("name") if isinstance(tag, dict) else getattr(tag, "name", None)
        if name:
            yield name


def matches_tags(snippet: Any, tags: Sequence[str]) -> bool:
    """True when the snippet carries every requested tag name (case-insensitive)."""
    wanted = {tag.strip().lower() for tag in tags if tag and tag.strip()}
    if not wanted:
        return True
    have = {name.lower() for name in _tag_names(snippet)}
    return wanted <= have


def filter_by_tags(snippets: Sequence[Any], tags: Sequence[str]) -> List[Any]:
    if not tags:
        return list(snippets)
    return [snippet for snippet in snippets if matches_tags(snippet, tags)]
