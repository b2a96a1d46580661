"""Vote and rating models."""

from sqlalchemy import CheckConstraint, Column, ForeignKey, Integer, SmallInteger, UniqueConstraint
from sqlalchemy.orm import relationship

from listshare.database import Base
from listshare.models.mixins import CreatedAtMixin, TimestampMixin


class ListVote(Base, CreatedAtMixin):
    """A user's current vote direction on an item (+1 or -1)."""

    __tablename__ = "list_votes"
    __table_args__ = (
        UniqueConstraint("list_item_id", "user_id", name="uq_list_votes_item_user"),
        CheckConstraint("vote_type IN (1, -1)", name="ck_list_votes_vote_type"),
    )

    id = Column(Integer, primary_key=True, index=True)
    list_item_id = Column(
        Integer, ForeignKey("list_items.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    vote_type = Column(SmallInteger, nullable=False)

    item = relationship("ListItem", back_populates="votes")


class ListRating(Base, TimestampMixin):
    """A user's 1-5 star rating of an item."""

    __tablename__ = "list_ratings"
    __table_args__ = (
        UniqueConstraint("list_item_id", "user_id", name="uq_list_ratings_item_user"),
        CheckConstraint("rating BETWEEN 1 AND 5", name="ck_list_ratings_rating"),
    )

    id = Column(Integer, primary_key=True, index=True)
    list_item_id = Column(
        Integer, ForeignKey("list_items.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    rating = Column(SmallInteger, nullable=False)

    item = relationship("ListItem", back_populates="ratings")
