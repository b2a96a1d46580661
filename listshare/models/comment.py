"""Item comment model."""

from sqlalchemy import Column, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship

from listshare.database import Base
from listshare.models.mixins import TimestampMixin


class ListItemComment(Base, TimestampMixin):
    """Comment on a list item. Only its author may delete it."""

    __tablename__ = "list_item_comments"

    id = Column(Integer, primary_key=True, index=True)
    list_item_id = Column(
        Integer, ForeignKey("list_items.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    comment = Column(Text, nullable=False)

    # Relationships
    item = relationship("ListItem", back_populates="comments")
    author = relationship("User")
