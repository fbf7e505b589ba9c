"""
CodeVault Backend — ORM Models
===============================

Importing this package registers every table with `Base.metadata`
(Alembic autogenerate and the test schema both rely on that).
"""

from codevault.models.note import Note
from codevault.models.profile import Profile
from codevault.models.recently_viewed import RecentlyViewed
from codevault.models.review import Review
from codevault.models.snippet import Snippet, SnippetTag, Tag

__all__ = [
    "Note",
    "Profile",
    "RecentlyViewed",
    "Review",
    "Snippet",
    "SnippetTag",
    "Tag",
]
