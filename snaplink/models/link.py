"""Link SQLAlchemy model."""

from datetime import datetime, timezone
from uuid import UUID, uuid4

from sqlalchemy import Boolean, DateTime, Index, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from snaplink.core.database import Base


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes (SQLite drops the offset)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class Link(Base):
    """Link model for shortened URLs."""

    __tablename__ = "links"
    __table_args__ = (
        Index("ix_links_created_at", "created_at"),
        Index("ix_links_clicks", "clicks"),
    )

    id: Mapped[UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid4,
    )
    key: Mapped[str] = mapped_column(
        String(191),
        unique=True,
        nullable=False,
        comment="Normalized short key (e.g., 'abc' or 'docs/intro')",
    )
    url: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="The destination URL",
    )
    title: Mapped[str | None] = mapped_column(
        String(191),
        nullable=True,
        comment="Open Graph title of the destination, truncated",
    )
    description: Mapped[str | None] = mapped_column(
        String(280),
        nullable=True,
        comment="Open Graph description of the destination, truncated",
    )
    image: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        comment="First Open Graph image of the destination",
    )
    archived: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
        comment="Archived links never redirect again",
    )
    clicks: Mapped[int] = mapped_column(
        default=0,
        nullable=False,
        comment="Total click count (eventually consistent)",
    )
    user_id: Mapped[str | None] = mapped_column(
        String(191),
        nullable=True,
        index=True,
        comment="Owning principal, null for anonymous links",
    )
    expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        comment="Optional expiration timestamp",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Link {self.key} -> {self.url[:50]}>"

    @property
    def is_expired(self) -> bool:
        """Check if the link has expired."""
        if self.expires_at is None:
            return False
        return datetime.now(timezone.utc) > as_utc(self.expires_at)
