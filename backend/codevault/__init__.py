"""
CodeVault Backend — Application Package Initializer
===================================================

What: Marks the `codevault` directory as a Python package.
Who:  Used by uvicorn (`uvicorn codevault.main:app`), Alembic and pytest.

Architecture Note:
    The backend is a layered FastAPI service:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   Services (Access Layer + Proxies) │  ← Filters, cache, upstream calls
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │   Database (hosted Postgres store)  │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    Authentication, row-level security and object storage policies live in
    the hosted backend-as-a-service; this package only issues queries
    against it and verifies bearer tokens with its identity API.
"""

__version__ = "1.0.0"
