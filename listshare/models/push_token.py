"""Device push token model."""

from sqlalchemy import Column, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship, validates

from listshare.database import Base
from listshare.models.enums import PushPlatform
from listshare.models.mixins import TimestampMixin


class UserPushToken(Base, TimestampMixin):
    """Expo push token registered by one of a user's devices."""

    __tablename__ = "user_push_tokens"
    __table_args__ = (UniqueConstraint("user_id", "token", name="uq_user_push_tokens_user_token"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    token = Column(String(255), nullable=False)
    platform = Column(String(20), nullable=False)  # 'ios', 'android'

    # Relationships
    user = relationship("User", backref="push_tokens")

    @validates("platform")
    def validate_platform(self, key: str, value: PushPlatform | str) -> str:
        return PushPlatform(value).value
