"""SQLAlchemy models."""

from listshare.models.comment import ListItemComment
from listshare.models.invite_link import ListInviteLink
from listshare.models.item import ListItem
from listshare.models.list import List, ListMember, ListSettings, ListStatus
from listshare.models.push_token import UserPushToken
from listshare.models.user import User
from listshare.models.vote import ListRating, ListVote

__all__ = [
    "User",
    "List",
    "ListSettings",
    "ListStatus",
    "ListMember",
    "ListItem",
    "ListVote",
    "ListRating",
    "ListItemComment",
    "ListInviteLink",
    "UserPushToken",
]
