"""List, settings, status and member schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from listshare.models.enums import MemberRole, PublicAccess, SortBy


class ListCreate(BaseModel):
    """Create a new list."""

    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = Field(None, max_length=2000)
    public_access_mode: PublicAccess = PublicAccess.NONE


class ListUpdate(BaseModel):
    """Update a list."""

    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = Field(None, max_length=2000)
    public_access_mode: PublicAccess | None = None


class ListSettingsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    enable_status: bool
    enable_voting: bool
    enable_downvote: bool
    enable_rating: bool
    enable_shuffle: bool
    enable_ordering: bool
    enable_comments: bool
    allow_multiple_tags: bool
    sort_by: SortBy


class ListSettingsUpdate(BaseModel):
    """Partial update of a list's feature toggles."""

    enable_status: bool | None = None
    enable_voting: bool | None = None
    enable_downvote: bool | None = None
    enable_rating: bool | None = None
    enable_shuffle: bool | None = None
    enable_ordering: bool | None = None
    enable_comments: bool | None = None
    allow_multiple_tags: bool | None = None
    sort_by: SortBy | None = None


class ListResponse(BaseModel):
    """List response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    owner_id: int
    name: str
    description: str | None
    public_access_mode: PublicAccess
    settings: ListSettingsResponse | None = None
    created_at: datetime
    updated_at: datetime
    my_role: MemberRole | None = None


class ListStatusCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)


class ListStatusResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    list_id: int
    name: str
    position: int


class MemberResponse(BaseModel):
    """Membership row with a little of the member's profile."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    list_id: int
    user_id: int
    role: MemberRole
    invited_by: int | None
    created_at: datetime
    email: str | None = None
    username: str | None = None


class MemberRoleUpdate(BaseModel):
    """Change a member's role. The owner role is never accepted."""

    role: MemberRole
