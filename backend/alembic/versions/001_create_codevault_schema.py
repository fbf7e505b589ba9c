"""Create the CodeVault schema

Revision ID: 001
Revises: None
Create Date: 2026-10-19 00:00:00.000000+00:00

What:  Creates snippets, tags, snippet_tags, notes, profiles,
       recently_viewed and reviews.
How:   PostgreSQL features: gen_random_uuid() primary keys and
       TIMESTAMP WITH TIME ZONE columns defaulting to CURRENT_TIMESTAMP.

`user_id` columns reference the identity provider's users, which live in a
different schema of the hosted store, so they carry no foreign key here.
Row-level security policies are managed in the hosted store's dashboard.

Rollback: downgrade() drops every table (destructive).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id_column() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=True),
        server_default=sa.text("gen_random_uuid()"),
        nullable=False,
    )


def _timestamp(name: str) -> sa.Column:
    return sa.Column(
        name,
        sa.TIMESTAMP(timezone=True),
        server_default=sa.text("CURRENT_TIMESTAMP"),
        nullable=False,
    )


def upgrade() -> None:
    op.create_table(
        "snippets",
        _id_column(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("code", sa.Text(), nullable=False),
        sa.Column("language", sa.String(50), nullable=False, server_default=sa.text("'plaintext'")),
        sa.Column("is_favorite", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_public", sa.Boolean(), nullable=False, server_default=sa.false()),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.PrimaryKeyConstraint("id"),
    )
    # Owned list and public feed, both newest first
    op.create_index("idx_snippets_user_created", "snippets", ["user_id", sa.text("created_at DESC")])
    op.create_index("idx_snippets_public_created", "snippets", ["is_public", sa.text("created_at DESC")])

    op.create_table(
        "tags",
        _id_column(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(64), nullable=False),
        sa.Column("color", sa.String(16), nullable=False, server_default=sa.text("'#3B82F6'")),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_tags_user_id", "tags", ["user_id"])

    op.create_table(
        "snippet_tags",
        sa.Column("snippet_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("tag_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.ForeignKeyConstraint(["snippet_id"], ["snippets.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["tag_id"], ["tags.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("snippet_id", "tag_id"),
    )
    op.create_index("idx_snippet_tags_tag", "snippet_tags", ["tag_id"])

    op.create_table(
        "notes",
        _id_column(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("title", sa.String(255), nullable=False, server_default=sa.text("'Untitled'")),
        sa.Column("content", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("pdf_url", sa.Text(), nullable=True),
        sa.Column("pdf_name", sa.String(255), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_notes_user_updated", "notes", ["user_id", sa.text("updated_at DESC")])

    # Rows are inserted by the signup trigger in the hosted store; id = auth user id
    op.create_table(
        "profiles",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("username", sa.String(64), nullable=True),
        sa.Column("full_name", sa.String(255), nullable=True),
        sa.Column("avatar_url", sa.Text(), nullable=True),
        _timestamp("updated_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("username"),
    )

    op.create_table(
        "recently_viewed",
        _id_column(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("video_id", sa.String(64), nullable=False),
        sa.Column("title", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("thumbnail", sa.Text(), nullable=True),
        sa.Column("channel", sa.String(255), nullable=True),
        sa.Column("duration", sa.String(32), nullable=True),
        sa.Column("views", sa.String(32), nullable=True),
        sa.Column("likes", sa.String(32), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        _timestamp("viewed_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "video_id", name="uq_recently_viewed_user_video"),
    )

    op.create_table(
        "reviews",
        _id_column(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("rating", sa.Integer(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("rating BETWEEN 1 AND 5", name="ck_reviews_rating_range"),
    )


def downgrade() -> None:
    """Drop every CodeVault table. WARNING: all data is lost."""
    op.drop_table("reviews")
    op.drop_table("recently_viewed")
    op.drop_table("profiles")
    op.drop_index("idx_notes_user_updated", table_name="notes")
    op.drop_table("notes")
    op.drop_index("idx_snippet_tags_tag", table_name="snippet_tags")
    op.drop_table("snippet_tags")
    op.drop_index("ix_tags_user_id", table_name="tags")
    op.drop_table("tags")
    op.drop_index("idx_snippets_public_created", table_name="snippets")
    op.drop_index("idx_snippets_user_created", table_name="snippets")
    op.drop_table("snippets")
