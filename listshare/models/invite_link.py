"""Invite link model."""

import secrets
from datetime import UTC, datetime

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from listshare.config import get_settings
from listshare.database import Base
from listshare.models.mixins import TimestampMixin


def generate_invite_token() -> str:
    """Generate an unguessable, URL-safe invite token."""
    return secrets.token_urlsafe(get_settings().invite_token_bytes)


class ListInviteLink(Base, TimestampMixin):
    """Role-scoped shareable link granting membership to a list."""

    __tablename__ = "list_invite_links"
    __table_args__ = (
        CheckConstraint("used_count >= 0", name="ck_list_invite_links_used_count"),
        CheckConstraint(
            "max_uses IS NULL OR max_uses >= 1", name="ck_list_invite_links_max_uses"
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    list_id = Column(
        Integer, ForeignKey("lists.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    role = Column(String(20), nullable=False)
    token = Column(String(128), unique=True, nullable=False, index=True, default=generate_invite_token)
    expires_at = Column(DateTime(timezone=True), nullable=True)
    max_uses = Column(Integer, nullable=True)
    used_count = Column(Integer, nullable=False, default=0, server_default="0")

    # Relationships
    list = relationship("List", back_populates="invite_links")
    creator = relationship("User")

    def is_expired(self, now: datetime | None = None) -> bool:
        """Check if the link is past its expiry."""
        if self.expires_at is None:
            return False
        expires_at = self.expires_at
        # SQLite hands back naive datetimes
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=UTC)
        return (now or datetime.now(UTC)) > expires_at

    @property
    def is_exhausted(self) -> bool:
        """Check if the link has no uses left."""
        return self.max_uses is not None and self.used_count >= self.max_uses
