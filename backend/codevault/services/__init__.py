# Services package init
"""
CodeVault Backend — Services Layer
===================================

What:  Business logic between the route handlers (HTTP) and the store.
How:   Each module exposes a class plus a module-level singleton; routes call
       the singleton, tests construct their own instance or override the
       matching `get_*` dependency.

Service Inventory:
    Snippet library
        - SnippetService: CRUD, favorites, tag links, cached listings
        - TagService: per-user tags
        - search: cache-key canonicalization and the tag post-filter
        - QueryCache: (resource, user, filters) result cache
        - realtime: database-webhook → cache invalidation
    AI assistant
        - LLMService (abstract) / GeminiService: analysis and tutor chat
    Learning zone
        - YouTubeService, GitHubService: search proxies
        - LearningService: recently viewed videos
    Accounts
        - IdentityService: admin user creation and token verification
        - auth_service: signup workflow
        - ProfileService, ReviewService
    Documents
        - FileService: upload validation and storage
        - NoteService: PDF notes
"""
