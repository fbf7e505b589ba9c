"""
CodeVault — HTTP API Client
============================

What:  Async client for the CodeVault REST API plus a small on-disk store of
       client-side state (chat transcript, recently viewed videos, last
       opened note, unsaved snippet draft).
How:   httpx.AsyncClient for transport. Every call goes through fetch_json(),
       which applies a per-request timeout and turns error responses into
       ApiClientError carrying the server's `error` message.
Who:   Scripts, integration tests and CLI tooling that talk to a running
       backend.

Timeouts:
    15s for every request, except analyze() which waits 60s for the model.

Usage:
    async with CodeVaultClient("http://localhost:3000", token=access_token) as api:
        snippets = await api.list_snippets(query="debounce")
"""

import json
import logging
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 15.0
ANALYZE_TIMEOUT = 60.0
MAX_RECENT = 10


class ApiClientError(Exception):
    """A request failed: timeout, transport error, or a non-2xx response."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: Any = None):
        self.message = message
        self.status_code = status_code
        self.body = body
        super().__init__(message)


def _error_message(response: httpx.Response, body: Any) -> str:
    if isinstance(body, dict):
        message = body.get("message") or body.get("error")
        if message:
            return str(message)
    return f"Request failed ({response.status_code})"


async def fetch_json(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    timeout: float = DEFAULT_TIMEOUT,
    **kwargs: Any,
) -> Any:
    """
    Send one request and decode the reply.

    Returns:
        The decoded JSON body, the text body for non-JSON replies, or None
        for an empty body (204).

    Raises:
        ApiClientError on timeout, transport failure or a non-2xx status.
    """
    try:
        response = await client.request(method, url, timeout=timeout, **kwargs)
    except httpx.TimeoutException as e:
        raise ApiClientError(f"Request timed out after {timeout:g}s") from e
    except httpx.HTTPError as e:
        raise ApiClientError(f"Request failed: {e}") from e

    body: Any = None
    if response.content:
        if "application/json" in response.headers.get("content-type", ""):
            try:
                body = response.json()
            except ValueError:
                body = None
        else:
            body = response.text

    if response.is_error:
        raise ApiClientError(_error_message(response, body), response.status_code, body)
    return body


class CodeVaultClient:
    """
    Thin wrapper over the /api endpoints.

    Pass `transport` to run against an ASGI app or a MockTransport in tests.
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        session_id: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        headers = {}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        if session_id:
            headers["X-Session-ID"] = session_id
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            transport=transport,
        )

    async def __aenter__(self) -> "CodeVaultClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _call(self, method: str, path: str, **kwargs: Any) -> Any:
        return await fetch_json(self._client, method, path, **kwargs)

    # ── AI ────────────────────────────────────────────────────────────────

    async def analyze(self, code: str) -> Dict[str, Any]:
        return await self._call("POST", "/api/ai/analyze", json={"code": code}, timeout=ANALYZE_TIMEOUT)

    async def chat(self, messages: List[Dict[str, str]]) -> str:
        data = await self._call("POST", "/api/ai/chat", json={"messages": messages})
        return data["reply"]

    # ── Learning ──────────────────────────────────────────────────────────

    async def search_videos(self, query: str) -> List[Dict[str, Any]]:
        return await self._call("GET", "/api/youtube/search", params={"q": query})

    async def search_repositories(self, query: str = "", language: str = "javascript") -> List[Dict[str, Any]]:
        return await self._call("GET", "/api/github/search", params={"q": query, "language": language})

    async def recent_videos(self) -> List[Dict[str, Any]]:
        return await self._call("GET", "/api/learning/recent")

    async def record_view(self, video: Dict[str, Any]) -> List[Dict[str, Any]]:
        return await self._call("POST", "/api/learning/recent", json=video)

    # ── Auth ──────────────────────────────────────────────────────────────

    async def signup(self, email: str, password: str, username: str) -> Dict[str, Any]:
        return await self._call(
            "POST",
            "/api/auth/signup",
            json={"email": email, "password": password, "username": username},
        )

    # ── Snippets & tags ───────────────────────────────────────────────────

    async def list_snippets(
        self,
        query: Optional[str] = None,
        language: Optional[str] = None,
        tags: Optional[List[str]] = None,
        public: bool = False,
    ) -> List[Dict[str, Any]]:
        params: Dict[str, Any] = {}
        if query:
            params["query"] = query
        if language:
            params["language"] = language
        if tags:
            params["tags"] = list(tags)
        path = "/api/snippets/public" if public else "/api/snippets"
        return await self._call("GET", path, params=params)

    async def create_snippet(self, **fields: Any) -> Dict[str, Any]:
        return await self._call("POST", "/api/snippets", json=fields)

    async def update_snippet(self, snippet_id: str, **fields: Any) -> Dict[str, Any]:
        return await self._call("PATCH", f"/api/snippets/{snippet_id}", json=fields)

    async def delete_snippet(self, snippet_id: str) -> None:
        await self._call("DELETE", f"/api/snippets/{snippet_id}")

    async def set_favorite(self, snippet_id: str, is_favorite: bool) -> Dict[str, Any]:
        return await self._call(
            "PUT", f"/api/snippets/{snippet_id}/favorite", json={"is_favorite": is_favorite}
        )

    async def list_tags(self) -> List[Dict[str, Any]]:
        return await self._call("GET", "/api/tags")

    async def create_tag(self, name: str, color: Optional[str] = None) -> Dict[str, Any]:
        payload = {"name": name}
        if color:
            payload["color"] = color
        return await self._call("POST", "/api/tags", json=payload)

    # ── Notes ─────────────────────────────────────────────────────────────

    async def list_notes(self, query: Optional[str] = None) -> List[Dict[str, Any]]:
        return await self._call("GET", "/api/notes", params={"q": query} if query else None)

    async def upload_note(self, path: Path, title: Optional[str] = None) -> Dict[str, Any]:
        data = {"title": title} if title else None
        with open(path, "rb") as fh:
            files = {"file": (path.name, fh.read(), "application/pdf")}
        return await self._call("POST", "/api/notes", files=files, data=data)

    # ── Reviews ───────────────────────────────────────────────────────────

    async def list_reviews(self, limit: int = 20) -> List[Dict[str, Any]]:
        return await self._call("GET", "/api/reviews", params={"limit": limit})

    async def post_review(self, rating: int, content: str) -> Dict[str, Any]:
        return await self._call("POST", "/api/reviews", json={"rating": rating, "content": content})


class LocalState:
    """
    Client-side state persisted as one JSON file.

    Keys are namespaced by user id (or "anonymous") so two accounts on the
    same machine never see each other's chat or history.

    Stored keys:
        codevault_chat_messages_<uid>     chat transcript
        recently_viewed_videos_<uid>      newest first, capped at 10
        last_viewed_video_id_<uid>
        codevault_last_pdf_<uid>          last opened note id
        codevault_snippet_draft_<uid>     unsaved snippet form
    """

    def __init__(self, path: Path, user_id: Optional[uuid.UUID] = None):
        self.path = Path(path)
        self.namespace = str(user_id) if user_id else "anonymous"
        self._data: Dict[str, Any] = self._load()

    def _load(self) -> Dict[str, Any]:
        if not self.path.is_file():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable state file %s: %s", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(self._data, indent=2), encoding="utf-8")

    def _key(self, name: str) -> str:
        return f"{name}_{self.namespace}"

    def get(self, name: str, default: Any = None) -> Any:
        return self._data.get(self._key(name), default)

    def set(self, name: str, value: Any) -> None:
        if value is None:
            self._data.pop(self._key(name), None)
        else:
            self._data[self._key(name)] = value
        self._save()

    # ── Chat ──────────────────────────────────────────────────────────────

    @property
    def chat_messages(self) -> List[Dict[str, str]]:
        return list(self.get("codevault_chat_messages", []))

    def save_chat(self, messages: List[Dict[str, str]]) -> None:
        self.set("codevault_chat_messages", list(messages))

    def clear_chat(self) -> None:
        self.set("codevault_chat_messages", None)

    # ── Learning ──────────────────────────────────────────────────────────

    @property
    def recent_videos(self) -> List[Dict[str, Any]]:
        return list(self.get("recently_viewed_videos", []))

    def remember_video(self, video: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Move (or add) the video to the front and cap the list."""
        videos = [v for v in self.recent_videos if v.get("id") != video.get("id")]
        videos.insert(0, video)
        videos = videos[:MAX_RECENT]
        self.set("recently_viewed_videos", videos)
        self.set("last_viewed_video_id", video.get("id"))
        return videos

    def forget_video(self, video_id: str) -> None:
        self.set("recently_viewed_videos", [v for v in self.recent_videos if v.get("id") != video_id])

    @property
    def last_viewed_video_id(self) -> Optional[str]:
        return self.get("last_viewed_video_id")

    # ── Notes & drafts ────────────────────────────────────────────────────

    @property
    def last_note_id(self) -> Optional[str]:
        return self.get("codevault_last_pdf")

    @last_note_id.setter
    def last_note_id(self, note_id: Optional[str]) -> None:
        self.set("codevault_last_pdf", note_id)

    @property
    def snippet_draft(self) -> Optional[Dict[str, Any]]:
        return self.get("codevault_snippet_draft")

    @snippet_draft.setter
    def snippet_draft(self, draft: Optional[Dict[str, Any]]) -> None:
        self.set("codevault_snippet_draft", draft)
