"""Pydantic schemas for API requests and responses."""

from listshare.schemas.auth import AuthResponse, UserLogin, UserRegister, UserResponse
from listshare.schemas.invite import (
    InviteLinkCreate,
    InviteLinkResponse,
    InvitePreview,
    RedeemResponse,
)
from listshare.schemas.item import (
    CommentCreate,
    CommentResponse,
    ItemResponse,
    RatingRequest,
    RatingResponse,
    VoteRequest,
    VoteResponse,
)
from listshare.schemas.list import (
    ListCreate,
    ListResponse,
    ListSettingsResponse,
    ListSettingsUpdate,
    ListStatusCreate,
    ListStatusResponse,
    ListUpdate,
    MemberResponse,
    MemberRoleUpdate,
)
from listshare.schemas.notification import ChangeEvent, ChangeEventAccepted

__all__ = [
    "UserRegister",
    "UserLogin",
    "UserResponse",
    "AuthResponse",
    "ListCreate",
    "ListUpdate",
    "ListResponse",
    "ListSettingsResponse",
    "ListSettingsUpdate",
    "ListStatusCreate",
    "ListStatusResponse",
    "MemberResponse",
    "MemberRoleUpdate",
    "ItemResponse",
    "VoteRequest",
    "VoteResponse",
    "RatingRequest",
    "RatingResponse",
    "CommentCreate",
    "CommentResponse",
    "InviteLinkCreate",
    "InviteLinkResponse",
    "InvitePreview",
    "RedeemResponse",
    "ChangeEvent",
    "ChangeEventAccepted",
]
