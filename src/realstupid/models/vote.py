"""Models capturing voting interactions on posts."""

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from realstupid.db.session import Base
from realstupid.db.time import utcnow

VOTE_UP = "up"
VOTE_DOWN = "down"
VOTE_TYPES = (VOTE_UP, VOTE_DOWN)


class PostVote(Base):
    """Per-user vote on a post; the source of truth for post counters."""

    __tablename__ = "post_votes"
    __table_args__ = (
        CheckConstraint("vote_type IN ('up', 'down')", name="ck_post_votes_vote_type"),
        Index("ix_post_votes_post_id", "post_id"),
    )

    # Composite primary key prevents duplicate votes from the same user.
    user_id: Mapped[str] = mapped_column(
        String(191),
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )
    post_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("posts.id", ondelete="CASCADE"),
        primary_key=True,
    )
    vote_type: Mapped[str] = mapped_column(String(4), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
