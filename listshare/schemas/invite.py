"""Invite link schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from listshare.models.enums import MemberRole


class InviteLinkCreate(BaseModel):
    """Create an invite link for a list."""

    role: MemberRole = MemberRole.VIEW
    max_uses: int | None = Field(None, ge=1)
    expires_hours: float | None = Field(None, gt=0)


class InviteLinkResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    list_id: int
    created_by: int
    role: MemberRole
    token: str
    expires_at: datetime | None
    max_uses: int | None
    used_count: int
    created_at: datetime
    url: str | None = None


class InvitePreview(BaseModel):
    """What a token grants, shown before the user accepts."""

    list_id: int
    list_name: str
    role: MemberRole


class RedeemResponse(BaseModel):
    list_id: int
    role: MemberRole
    joined: bool
