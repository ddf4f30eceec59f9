"""SQLAlchemy model for posts."""

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from realstupid.db.session import Base
from realstupid.db.time import utcnow

MODE_REAL = "real"
MODE_STUPID = "stupid"
MODES = (MODE_REAL, MODE_STUPID)

# Largest id a 32-bit INTEGER primary key can hold.
POST_ID_MAX = 2**31 - 1


def is_storable_post_id(post_id: int) -> bool:
    """Return True when ``post_id`` fits the posts primary key column."""
    return 1 <= post_id <= POST_ID_MAX


class Post(Base):
    """A post in one community of one mode.

    ``upvotes`` and ``downvotes`` are denormalized counts of the rows in
    ``post_votes``; only the vote engine writes them.
    """

    __tablename__ = "posts"
    __table_args__ = (
        CheckConstraint("mode IN ('real', 'stupid')", name="ck_posts_mode"),
        CheckConstraint(
            "link IS NULL OR image_url IS NULL",
            name="ck_posts_link_xor_image",
        ),
        Index("ix_posts_mode_created_at", "mode", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(256), nullable=False)
    content: Mapped[str | None] = mapped_column(Text, nullable=True)
    link: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    community: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    mode: Mapped[str] = mapped_column(String(10), nullable=False, default=MODE_REAL)
    user_id: Mapped[str] = mapped_column(
        String(191),
        ForeignKey("users.id"),
        nullable=False,
    )
    upvotes: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    downvotes: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
