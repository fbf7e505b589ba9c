# Routes package init
"""
CodeVault Backend — API Routes Package
=======================================

What:  HTTP route handlers that accept requests and return responses.

Route Inventory:
    - ai.py:        POST /api/ai/analyze, POST /api/ai/chat
    - youtube.py:   GET  /api/youtube/search
    - github.py:    GET  /api/github/search
    - auth.py:      POST /api/auth/signup
    - snippets.py:  /api/snippets (list, public list, CRUD, favorite)
    - tags.py:      /api/tags
    - notes.py:     /api/notes and GET /api/files/{path}
    - learning.py:  /api/learning/recent, /api/learning/last-viewed
    - reviews.py:   /api/reviews
    - profiles.py:  /api/profile, /api/profile/avatar
    - realtime.py:  POST /api/realtime/changes
    - health.py:    GET  /health
    - frontend.py:  catch-all GET serving the built SPA (registered last)

Design Principle:
    Routes stay THIN. They extract data from the request, call a service and
    pick the status code. Business rules live in services/.
"""
