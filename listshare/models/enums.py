"""Enums for model fields."""

from enum import Enum


class MemberRole(str, Enum):
    """Roles on a shared list, ordered from least to most authority.

    OWNER is never stored on a membership row. Ownership lives on
    ``List.owner_id`` and is only produced by the access policy.
    """

    VIEW = "view"
    EDIT = "edit"
    ADMIN = "admin"
    OWNER = "owner"

    @property
    def rank(self) -> int:
        return _ROLE_RANK[self]

    def at_least(self, other: "MemberRole") -> bool:
        """Check if this role carries at least the authority of ``other``."""
        return self.rank >= other.rank

    def can_edit(self) -> bool:
        """Check if this role allows contributing to the list."""
        return self.at_least(MemberRole.EDIT)

    def can_admin(self) -> bool:
        """Check if this role allows managing members, links and settings."""
        return self.at_least(MemberRole.ADMIN)

    @classmethod
    def grantable(cls) -> tuple["MemberRole", ...]:
        """Roles that may be written to a membership or invite link."""
        return (cls.VIEW, cls.EDIT, cls.ADMIN)


_ROLE_RANK = {
    MemberRole.VIEW: 1,
    MemberRole.EDIT: 2,
    MemberRole.ADMIN: 3,
    MemberRole.OWNER: 4,
}


class PublicAccess(str, Enum):
    """Who besides members may read a list."""

    NONE = "none"
    MEMBERS = "members"
    ANYONE = "anyone"


class SortBy(str, Enum):
    """Default item ordering for a list."""

    MANUAL = "manual"
    VOTES = "votes"
    RATINGS = "ratings"
    SHUFFLE = "shuffle"


class PushPlatform(str, Enum):
    """Device platform a push token was registered from."""

    IOS = "ios"
    ANDROID = "android"
