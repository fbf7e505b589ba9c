"""
CodeVault Backend — Recently Viewed Video SQLAlchemy Model
===========================================================

What:  ORM model for `recently_viewed`: a denormalized snapshot of a video
       the user opened, refreshed on every view.

At most 10 rows are kept per user (trimmed by LearningService after each
upsert). (user_id, video_id) is unique, so a re-view updates the row.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, String, Text, UniqueConstraint, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from codevault.database import Base


class RecentlyViewed(Base):
    __tablename__ = "recently_viewed"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    video_id: Mapped[str] = mapped_column(String(64), nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False, default="")
    thumbnail: Mapped[str | None] = mapped_column(Text, nullable=True)
    channel: Mapped[str | None] = mapped_column(String(255), nullable=True)
    duration: Mapped[str | None] = mapped_column(String(32), nullable=True)
    views: Mapped[str | None] = mapped_column(String(32), nullable=True)
    likes: Mapped[str | None] = mapped_column(String(32), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    viewed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        UniqueConstraint("user_id", "video_id", name="uq_recently_viewed_user_video"),
    )
