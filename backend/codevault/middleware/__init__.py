# Middleware package init
"""
CodeVault Backend — Middleware Package
=======================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (outermost first):
    Request → [Rate Limit] → [Request ID] → [Logging] → [GZip]
            → [Security Headers] → [Origin Allow-List] → [CORS] → Route Handler

    1. Rate Limit: reject abusive clients before any other work
    2. Request ID: correlation id for every log line and error body
    3. Logging: method, path, status and duration of every request
    4. Security Headers: hardening headers on every response, 403s included
    5. Origin Allow-List: 403 for browsers calling from an unknown origin
    6. CORS: Starlette's CORSMiddleware answers preflights and adds headers
"""
