"""List item model."""

from sqlalchemy import JSON, Boolean, Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from listshare.database import Base
from listshare.models.mixins import TimestampMixin


class ListItem(Base, TimestampMixin):
    """Item in a list.

    ``upvotes`` is a signed running total of vote directions, not a count of
    upvoters. Only the vote aggregator writes it.
    """

    __tablename__ = "list_items"

    id = Column(Integer, primary_key=True, index=True)
    list_id = Column(
        Integer, ForeignKey("lists.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(500), nullable=False)
    description = Column(String, nullable=True)
    url = Column(String(2048), nullable=True)
    status = Column(String(100), nullable=True)
    tags = Column(JSON, nullable=False, default=list)
    completed = Column(Boolean, nullable=False, default=False)
    position = Column(Integer, nullable=False, default=0)
    upvotes = Column(Integer, nullable=False, default=0, server_default="0")
    # "metadata" is reserved on declarative classes
    item_metadata = Column("metadata", JSON, nullable=False, default=dict)

    # Relationships
    list = relationship("List", back_populates="items")
    creator = relationship("User", foreign_keys=[user_id])
    votes = relationship("ListVote", back_populates="item", cascade="all, delete-orphan")
    ratings = relationship("ListRating", back_populates="item", cascade="all, delete-orphan")
    comments = relationship(
        "ListItemComment",
        back_populates="item",
        cascade="all, delete-orphan",
        order_by="ListItemComment.created_at",
    )
