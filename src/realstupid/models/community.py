"""SQLAlchemy model for communities."""

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from realstupid.db.session import Base
from realstupid.db.time import utcnow


class Community(Base):
    """A named community inside one mode. The name cannot change once created."""

    __tablename__ = "communities"
    __table_args__ = (
        CheckConstraint("mode IN ('real', 'stupid')", name="ck_communities_mode"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)
    mode: Mapped[str] = mapped_column(String(10), nullable=False, default="real")
    creator_id: Mapped[str] = mapped_column(
        String(191),
        ForeignKey("users.id"),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
