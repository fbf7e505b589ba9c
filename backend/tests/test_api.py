"""
CodeVault Backend — API Endpoint Tests
=======================================

What:  End-to-end requests through the ASGI app (middleware, validation,
       exception handlers, routes) with the store on in-memory SQLite and
       external providers replaced by fakes via dependency_overrides.

What we test:
    ✅ /api/ai/analyze validation order and the analysis status header
    ✅ /api/youtube/search query validation
    ✅ Snippet and tag CRUD status codes, anonymous listing
    ✅ Origin allow-list, security headers, request ids
    ✅ Health, unknown API routes, realtime webhook
"""

import uuid
from typing import List, Sequence

import pytest

from codevault.schemas.ai import MAX_CODE_LENGTH, AnalysisResult, ChatMessage
from codevault.schemas.video import Video
from codevault.services.gemini_service import ANALYSIS_FAILED, get_llm_service
from codevault.services.llm_base import LLMService
from codevault.services.youtube_service import get_youtube_service


class FakeLLM(LLMService):
    def __init__(self, result: AnalysisResult = None):
        self.result = result or AnalysisResult(
            title="Debounce", description="Delays calls", language="javascript", tags=["timing"]
        )
        self.analyzed: List[str] = []

    async def analyze_code(self, code: str) -> AnalysisResult:
        self.analyzed.append(code)
        return self.result

    async def chat(self, messages: Sequence[ChatMessage]) -> str:
        return f"echo: {messages[-1].content}"


class FakeYouTube:
    def __init__(self):
        self.queries: List[str] = []

    async def search(self, query: str) -> List[Video]:
        self.queries.append(query)
        return [Video(id="abc123", title="Learn Python", duration="10:00")]


@pytest.fixture
def llm(app) -> FakeLLM:
    fake = FakeLLM()
    app.dependency_overrides[get_llm_service] = lambda: fake
    return fake


@pytest.fixture
def youtube(app) -> FakeYouTube:
    fake = FakeYouTube()
    app.dependency_overrides[get_youtube_service] = lambda: fake
    return fake


class TestAnalyze:
    @pytest.mark.asyncio
    async def test_returns_suggestions(self, client, llm):
        response = await client.post("/api/ai/analyze", json={"code": "const x = 1;"})

        assert response.status_code == 200
        assert response.json()["title"] == "Debounce"
        assert response.headers["X-Analysis-Status"] == "ok"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [{}, {"code": ""}])
    async def test_missing_code(self, client, llm, body):
        response = await client.post("/api/ai/analyze", json=body)

        assert response.status_code == 400
        assert response.json()["error"] == "Code is required"
        assert llm.analyzed == []

    @pytest.mark.asyncio
    async def test_non_string_code_rejected(self, client, llm):
        response = await client.post("/api/ai/analyze", json={"code": 42})

        assert response.status_code == 400
        assert llm.analyzed == []

    @pytest.mark.asyncio
    async def test_length_limit(self, client, llm):
        at_limit = await client.post("/api/ai/analyze", json={"code": "a" * MAX_CODE_LENGTH})
        over_limit = await client.post("/api/ai/analyze", json={"code": "a" * (MAX_CODE_LENGTH + 1)})

        assert at_limit.status_code == 200
        assert over_limit.status_code == 413
        assert len(llm.analyzed) == 1

    @pytest.mark.asyncio
    async def test_placeholder_marked_failed(self, client, llm):
        llm.result = ANALYSIS_FAILED

        response = await client.post("/api/ai/analyze", json={"code": "???"})

        assert response.status_code == 200
        assert response.json()["title"] == "ANALYSIS_FAILED"
        assert response.headers["X-Analysis-Status"] == "failed"

    @pytest.mark.asyncio
    async def test_chat(self, client, llm):
        response = await client.post(
            "/api/ai/chat", json={"messages": [{"role": "user", "content": "What is a closure?"}]}
        )

        assert response.status_code == 200
        assert response.json() == {"reply": "echo: What is a closure?"}

    @pytest.mark.asyncio
    async def test_chat_must_end_with_user_message(self, client, llm):
        response = await client.post("/api/ai/chat", json={"messages": [{"role": "model", "content": "Hi"}]})

        assert response.status_code == 400


class TestYouTubeSearch:
    @pytest.mark.asyncio
    async def test_search(self, client, youtube):
        response = await client.get("/api/youtube/search", params={"q": "python"})

        assert response.status_code == 200
        assert response.json()[0]["id"] == "abc123"
        assert youtube.queries == ["python"]

    @pytest.mark.asyncio
    async def test_query_required(self, client, youtube):
        response = await client.get("/api/youtube/search")

        assert response.status_code == 400
        assert response.json()["error"] == 'Query parameter "q" is required'

    @pytest.mark.asyncio
    async def test_query_too_long(self, client, youtube):
        response = await client.get("/api/youtube/search", params={"q": "x" * 201})

        assert response.status_code == 400
        assert response.json()["error"] == 'Query parameter "q" too long'
        assert youtube.queries == []


class TestSnippetEndpoints:
    @pytest.mark.asyncio
    async def test_create_list_and_delete(self, client):
        await client.post("/api/tags", json={"name": "React"})
        created = await client.post(
            "/api/snippets",
            json={"title": "useDebounce", "code": "export function useDebounce() {}", "language": "javascript", "tags": ["react"]},
        )
        assert created.status_code == 201
        snippet = created.json()
        assert [tag["name"] for tag in snippet["tags"]] == ["React"]

        listed = await client.get("/api/snippets", params={"tags": "react"})
        assert [s["id"] for s in listed.json()] == [snippet["id"]]

        deleted = await client.delete(f"/api/snippets/{snippet['id']}")
        assert deleted.status_code == 204
        assert (await client.get("/api/snippets")).json() == []

    @pytest.mark.asyncio
    async def test_favorite(self, client):
        snippet = (await client.post("/api/snippets", json={"title": "t", "code": "c"})).json()

        response = await client.put(f"/api/snippets/{snippet['id']}/favorite", json={"is_favorite": True})

        assert response.status_code == 200
        assert response.json()["is_favorite"] is True

    @pytest.mark.asyncio
    async def test_blank_title_rejected(self, client):
        response = await client.post("/api/snippets", json={"title": "  ", "code": "c"})

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_anonymous_lists_are_empty(self, app, client):
        await client.post("/api/snippets", json={"title": "t", "code": "c", "is_public": True})
        app.state.test_user = None

        assert (await client.get("/api/snippets")).json() == []
        assert (await client.get("/api/snippets/public")).json() == []
        assert (await client.get("/api/tags")).json() == []

    @pytest.mark.asyncio
    async def test_anonymous_write_is_401(self, app, client):
        app.state.test_user = None

        response = await client.post("/api/snippets", json={"title": "t", "code": "c"})

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_unknown_snippet_is_404(self, client):
        response = await client.delete(f"/api/snippets/{uuid.uuid4()}")

        assert response.status_code == 404


class TestPlatform:
    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    @pytest.mark.asyncio
    async def test_unknown_origin_blocked(self, client):
        response = await client.get("/api/tags", headers={"Origin": "http://evil.test"})

        assert response.status_code == 403
        assert response.json() == {"error": "Origin not allowed"}
        assert response.headers["X-Content-Type-Options"] == "nosniff"

    @pytest.mark.asyncio
    async def test_allowed_origin_passes(self, client):
        response = await client.get("/api/tags", headers={"Origin": "http://localhost:5173"})

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "http://localhost:5173"

    @pytest.mark.asyncio
    async def test_request_id_echoed(self, client):
        response = await client.get("/health", headers={"X-Request-ID": "trace-42"})

        assert response.headers["X-Request-ID"] == "trace-42"

    @pytest.mark.asyncio
    async def test_unknown_api_route(self, client):
        response = await client.get("/api/does-not-exist")

        assert response.status_code == 404
        assert response.json()["error"] == "API route not found"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method", ["POST", "PUT", "PATCH", "DELETE"])
    async def test_unknown_api_route_any_method(self, client, method):
        response = await client.request(method, "/api/does-not-exist", json={})

        assert response.status_code == 404
        assert response.json() == {"error": "API route not found"}

    @pytest.mark.asyncio
    async def test_unknown_nested_api_route_is_not_served_the_app(self, client):
        response = await client.post("/api/snippets/bulk/import", json={})

        assert response.status_code == 404
        assert response.json()["error"] == "API route not found"

    @pytest.mark.asyncio
    async def test_realtime_webhook(self, client):
        response = await client.post(
            "/api/realtime/changes",
            json={"type": "INSERT", "table": "snippets", "record": {"user_id": str(uuid.uuid4())}},
            headers={"X-Webhook-Secret": "webhook-secret"},
        )

        assert response.status_code == 202
        assert set(response.json()["invalidated"]) == {"owned", "public", "tags"}

    @pytest.mark.asyncio
    async def test_realtime_webhook_wrong_secret(self, client):
        response = await client.post(
            "/api/realtime/changes", json={"table": "snippets"}, headers={"X-Webhook-Secret": "nope"}
        )

        assert response.status_code == 401
