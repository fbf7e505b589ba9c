"""
CodeVault Backend — GitHub Repository Search Service
=====================================================

What:  Proxies GitHub's repository search for the project explorer page.
How:   `q` is combined with a language qualifier ("{q} language:{lang}", or
       just "language:{lang}" when q is empty), sorted by stars, 12 per page.

GITHUB_TOKEN is optional; without it GitHub applies the anonymous rate limit
and a 403 from GitHub is passed through with its message.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from codevault.config import settings
from codevault.exceptions import UpstreamServiceError
from codevault.schemas.video import Repository

logger = logging.getLogger(__name__)

PER_PAGE = 12


def build_query(query: str, language: str) -> str:
    query = (query or "").strip()
    language = (language or "").strip()
    qualifier = f"language:{language}" if language else ""
    return " ".join(part for part in (query, qualifier) if part)


def to_repository(item: Dict[str, Any]) -> Repository:
    owner = item.get("owner") or {}
    return Repository(
        id=item.get("id", 0),
        name=item.get("name", ""),
        full_name=item.get("full_name", ""),
        description=item.get("description"),
        url=item.get("html_url", ""),
        stars=item.get("stargazers_count") or 0,
        forks=item.get("forks_count") or 0,
        language=item.get("language"),
        owner=owner.get("login"),
        owner_avatar=owner.get("avatar_url"),
        updated_at=item.get("updated_at"),
    )


class GitHubService:
    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/vnd.github+json"}
        if settings.github_token.strip():
            headers["Authorization"] = f"Bearer {settings.github_token.strip()}"
        return headers

    async def search_repositories(self, query: str = "", language: str = "javascript") -> List[Repository]:
        url = f"{settings.github_api_url.rstrip('/')}/search/repositories"
        params = {"q": build_query(query, language), "sort": "stars", "order": "desc", "per_page": PER_PAGE}
        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=15.0) as client:
                response = await client.get(url, params=params, headers=self._headers())
        except httpx.HTTPError as e:
            logger.error("GitHub request failed: %s", e)
            raise UpstreamServiceError(message="Failed to fetch repositories from GitHub", details=str(e))

        if response.status_code >= 400:
            try:
                message = response.json().get("message")
            except ValueError:
                message = None
            raise UpstreamServiceError(
                message=message or "Failed to fetch repositories from GitHub",
                status_code=response.status_code,
            )

        items = response.json().get("items") or []
        return [to_repository(item) for item in items]


# ── Singleton Instance ────────────────────────────────────────────────────
github_service = GitHubService()


def get_github_service() -> GitHubService:
    return github_service
