"""SQLAlchemy model for users mirrored from the identity provider."""

from datetime import datetime

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from realstupid.db.session import Base
from realstupid.db.time import utcnow


class User(Base):
    """Local mirror of an externally issued identity.

    The primary key is the provider's opaque user id; the row is created the
    first time the user is seen and never rewritten afterwards.
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(191), primary_key=True)
    display_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    email: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    avatar_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
