"""Row-level access policy for lists.

Mirrors the policies the store applies to each table: the core services
assume a request has already passed through here and never re-check roles.
"""

from sqlalchemy.orm import Session

from listshare.models.enums import MemberRole, PublicAccess
from listshare.models.list import List, ListMember


def get_membership(db: Session, list_id: int, user_id: int) -> ListMember | None:
    """Get a user's membership row on a list, if any."""
    return (
        db.query(ListMember)
        .filter(ListMember.list_id == list_id, ListMember.user_id == user_id)
        .first()
    )


def get_list_role(db: Session, list_obj: List, user_id: int | None) -> MemberRole | None:
    """Resolve the caller's role on a list.

    The owner gets the OWNER sentinel; members get their stored role;
    everyone else gets None.
    """
    if user_id is None:
        return None
    if list_obj.owner_id == user_id:
        return MemberRole.OWNER
    membership = get_membership(db, list_obj.id, user_id)
    if membership is None:
        return None
    return MemberRole(membership.role)


def can_read(db: Session, list_obj: List, user_id: int | None) -> bool:
    """Owner, members, and (per public access mode) everyone else may read."""
    mode = PublicAccess(list_obj.public_access_mode)
    if mode == PublicAccess.ANYONE:
        return True
    if user_id is None:
        return False
    if mode == PublicAccess.MEMBERS:
        return True
    return get_list_role(db, list_obj, user_id) is not None


def can_contribute(db: Session, list_obj: List, user_id: int | None) -> bool:
    """Voting, rating and commenting need an edit role or better."""
    role = get_list_role(db, list_obj, user_id)
    return role is not None and role.can_edit()


def can_manage(db: Session, list_obj: List, user_id: int | None) -> bool:
    """Members, settings, statuses and invite links are owner/admin only."""
    role = get_list_role(db, list_obj, user_id)
    return role is not None and role.can_admin()


def can_grant(actor_role: MemberRole | None, role: MemberRole) -> bool:
    """Check that ``actor_role`` may hand out ``role``.

    Nobody may grant the owner sentinel, and nobody may grant a role above
    their own.
    """
    if actor_role is None or role not in MemberRole.grantable():
        return False
    return actor_role.can_admin() and actor_role.at_least(role)
