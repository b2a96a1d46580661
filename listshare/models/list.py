"""List, settings, status and membership models."""

from sqlalchemy import (
    Boolean,
    Column,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from listshare.database import Base
from listshare.models.enums import MemberRole, PublicAccess, SortBy
from listshare.models.mixins import CreatedAtMixin, TimestampMixin


class List(Base, TimestampMixin):
    """A named, shareable list."""

    __tablename__ = "lists"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(String, nullable=True)
    public_access_mode = Column(String(20), nullable=False, default=PublicAccess.NONE.value)

    # Relationships
    owner = relationship("User", backref="lists")
    settings = relationship(
        "ListSettings", back_populates="list", uselist=False, cascade="all, delete-orphan"
    )
    statuses = relationship(
        "ListStatus",
        back_populates="list",
        cascade="all, delete-orphan",
        order_by="ListStatus.position",
    )
    items = relationship("ListItem", back_populates="list", cascade="all, delete-orphan")
    members = relationship("ListMember", back_populates="list", cascade="all, delete-orphan")
    invite_links = relationship(
        "ListInviteLink", back_populates="list", cascade="all, delete-orphan"
    )


class ListSettings(Base):
    """Per-list feature toggles. Exactly one row per list."""

    __tablename__ = "list_settings"

    id = Column(Integer, primary_key=True, index=True)
    list_id = Column(
        Integer, ForeignKey("lists.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    enable_status = Column(Boolean, nullable=False, default=False)
    enable_voting = Column(Boolean, nullable=False, default=True)
    enable_downvote = Column(Boolean, nullable=False, default=False)
    enable_rating = Column(Boolean, nullable=False, default=False)
    enable_shuffle = Column(Boolean, nullable=False, default=False)
    enable_ordering = Column(Boolean, nullable=False, default=False)
    enable_comments = Column(Boolean, nullable=False, default=False)
    allow_multiple_tags = Column(Boolean, nullable=False, default=False)
    sort_by = Column(String(20), nullable=False, default=SortBy.MANUAL.value)

    list = relationship("List", back_populates="settings")


class ListStatus(Base):
    """Custom status a list's items can be tagged with."""

    __tablename__ = "list_statuses"

    id = Column(Integer, primary_key=True, index=True)
    list_id = Column(
        Integer, ForeignKey("lists.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = Column(String(100), nullable=False)
    position = Column(Integer, nullable=False, default=0)

    list = relationship("List", back_populates="statuses")


class ListMember(Base, CreatedAtMixin):
    """A non-owner user's access to a list."""

    __tablename__ = "list_members"
    __table_args__ = (UniqueConstraint("list_id", "user_id", name="uq_list_members_list_user"),)

    id = Column(Integer, primary_key=True, index=True)
    list_id = Column(
        Integer, ForeignKey("lists.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    role = Column(String(20), nullable=False, default=MemberRole.VIEW.value)
    invited_by = Column(Integer, ForeignKey("users.id"), nullable=True)

    # Relationships
    list = relationship("List", back_populates="members")
    user = relationship("User", foreign_keys=[user_id], backref="memberships")
    inviter = relationship("User", foreign_keys=[invited_by])
