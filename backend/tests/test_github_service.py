"""
CodeVault Backend — Repository Search Proxy Tests
==================================================
"""

import httpx
import pytest

from codevault.exceptions import UpstreamServiceError
from codevault.services.github_service import GitHubService, build_query


class TestBuildQuery:
    def test_query_with_language(self):
        assert build_query("state machine", "python") == "state machine language:python"

    def test_empty_query_searches_language_only(self):
        assert build_query("", "go") == "language:go"


class TestSearchRepositories:
    @pytest.mark.asyncio
    async def test_sorted_by_stars_and_flattened(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"items": [{
                "id": 1,
                "name": "react",
                "full_name": "facebook/react",
                "description": "UI library",
                "html_url": "https://github.com/facebook/react",
                "stargazers_count": 220000,
                "forks_count": 45000,
                "language": "JavaScript",
                "owner": {"login": "facebook", "avatar_url": "https://avatars/fb.png"},
                "updated_at": "2026-10-01T00:00:00Z",
            }]})

        service = GitHubService(transport=httpx.MockTransport(handler))
        repos = await service.search_repositories("ui", "javascript")

        params = seen[0].url.params
        assert params["q"] == "ui language:javascript"
        assert params["sort"] == "stars"
        assert params["order"] == "desc"
        assert params["per_page"] == "12"
        assert repos[0].full_name == "facebook/react"
        assert repos[0].url == "https://github.com/facebook/react"
        assert repos[0].owner == "facebook"
        assert repos[0].stars == 220000

    @pytest.mark.asyncio
    async def test_error_status_is_forwarded(self):
        service = GitHubService(transport=httpx.MockTransport(
            lambda request: httpx.Response(422, json={"message": "Validation Failed"})
        ))

        with pytest.raises(UpstreamServiceError) as exc_info:
            await service.search_repositories("", "")

        assert exc_info.value.status_code == 422
        assert exc_info.value.message == "Validation Failed"
