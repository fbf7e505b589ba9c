"""
CodeVault Backend — Frontend (SPA) Fallback
============================================

What:  Serves the built single-page app from FRONTEND_DIST. Any GET that no
       other route matched returns the requested asset, or index.html so the
       client-side router can take over.
Who:   Registered LAST in create_app(); otherwise it would shadow the API.

Unmatched `/api/*` paths never fall through to index.html: they answer
404 `{"error": "API route not found"}` whatever the method.
"""

from pathlib import Path

from fastapi import APIRouter
from fastapi.responses import FileResponse, JSONResponse
from starlette.responses import Response

from codevault.config import settings

router = APIRouter(include_in_schema=False)


def _dist_root() -> Path:
    return Path(settings.frontend_dist).resolve()


_API_NOT_FOUND = {"error": "API route not found"}


@router.api_route("/api", methods=["POST", "PUT", "PATCH", "DELETE"])
@router.api_route("/api/{rest:path}", methods=["POST", "PUT", "PATCH", "DELETE"])
async def api_not_found(rest: str = "") -> Response:
    return JSONResponse(status_code=404, content=_API_NOT_FOUND)


@router.get("/{full_path:path}")
async def serve_frontend(full_path: str) -> Response:
    if full_path == "api" or full_path.startswith("api/"):
        return JSONResponse(status_code=404, content=_API_NOT_FOUND)

    root = _dist_root()
    if full_path:
        candidate = (root / full_path).resolve()
        if root in candidate.parents and candidate.is_file():
            return FileResponse(str(candidate))

    index = root / "index.html"
    if not index.is_file():
        return JSONResponse(status_code=404, content={"error": "Frontend build not found"})
    return FileResponse(str(index))
