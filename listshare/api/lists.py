"""List, settings, status and member API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from listshare.api.dependencies import (
    get_current_user,
    get_managed_list,
    get_optional_user,
    get_readable_list,
)
from listshare.database import get_db
from listshare.models.enums import MemberRole, PublicAccess, SortBy
from listshare.models.list import List, ListMember, ListSettings, ListStatus
from listshare.models.user import User
from listshare.schemas.item import ItemResponse
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
from listshare.services import access
from listshare.services.realtime import ListEventType, publish_list_event
from listshare.services.voting import list_items_for_user

router = APIRouter(prefix="/api/v1/lists", tags=["lists"])

PUBLIC_LISTS_LIMIT = 50


def to_list_response(db: Session, list_obj: List, user: User | None) -> ListResponse:
    list_response = ListResponse.model_validate(list_obj)
    list_response.my_role = access.get_list_role(db, list_obj, user.id if user else None)
    return list_response


@router.get("", response_model=list[ListResponse])
async def get_lists(
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
):
    """Get all lists owned by or shared with the current user."""
    owned_lists = db.query(List).filter(List.owner_id == current_user.id).all()
    member_lists = (
        db.query(List)
        .join(ListMember, ListMember.list_id == List.id)
        .filter(ListMember.user_id == current_user.id)
        .all()
    )

    all_lists = {lst.id: lst for lst in owned_lists + member_lists}.values()
    return [
        to_list_response(db, lst, current_user)
        for lst in sorted(all_lists, key=lambda x: x.created_at, reverse=True)
    ]


@router.get("/public", response_model=list[ListResponse])
async def get_public_lists(
    current_user: Annotated[User | None, Depends(get_optional_user)],
    db: Annotated[Session, Depends(get_db)],
    limit: Annotated[int, Query(ge=1, le=PUBLIC_LISTS_LIMIT)] = PUBLIC_LISTS_LIMIT,
):
    """Discover lists opened to people outside their membership.

    Anonymous callers only see lists open to anyone; signed-in callers also
    see lists open to all members. Most recently updated first.
    """
    modes = [PublicAccess.ANYONE.value]
    if current_user is not None:
        modes.append(PublicAccess.MEMBERS.value)

    public_lists = (
        db.query(List)
        .filter(List.public_access_mode.in_(modes))
        .order_by(List.updated_at.desc(), List.id.desc())
        .limit(limit)
        .all()
    )
    return [to_list_response(db, lst, current_user) for lst in public_lists]


@router.post("", response_model=ListResponse, status_code=status.HTTP_201_CREATED)
async def create_list(
    list_data: ListCreate,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
):
    """Create a new list together with its settings row."""
    new_list = List(
        name=list_data.name,
        description=list_data.description,
        public_access_mode=list_data.public_access_mode.value,
        owner_id=current_user.id,
    )
    new_list.settings = ListSettings()
    db.add(new_list)
    db.commit()
    db.refresh(new_list)

    return to_list_response(db, new_list, current_user)


@router.get("/{list_id}", response_model=ListResponse)
async def get_list(
    list_id: int,
    current_user: Annotated[User | None, Depends(get_optional_user)],
    db: Annotated[Session, Depends(get_db)],
):
    """Get a specific list."""
    list_obj = get_readable_list(db, list_id, current_user)
    return to_list_response(db, list_obj, current_user)


@router.put("/{list_id}", response_model=ListResponse)
async def update_list(
    list_id: int,
    list_data: ListUpdate,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
):
    """Update a list's name, description or public access mode."""
    list_obj = get_managed_list(db, list_id, current_user)

    for field, value in list_data.model_dump(exclude_unset=True).items():
        if value is None and field != "description":
            continue
        setattr(list_obj, field, value.value if field == "public_access_mode" else value)

    db.commit()
    db.refresh(list_obj)
    publish_list_event(list_id, ListEventType.LIST_UPDATED)
    return to_list_response(db, list_obj, current_user)


@router.delete("/{list_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_list(
    list_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
):
    """Delete a list (owner only)."""
    list_obj = get_readable_list(db, list_id, current_user)

    if list_obj.owner_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the owner can delete this list",
        )

    db.delete(list_obj)
    db.commit()


@router.get("/{list_id}/settings", response_model=ListSettingsResponse)
async def get_list_settings(
    list_id: int,
    current_user: Annotated[User | None, Depends(get_optional_user)],
    db: Annotated[Session, Depends(get_db)],
):
    """Get a list's feature toggles."""
    list_obj = get_readable_list(db, list_id, current_user)
    return list_obj.settings


@router.put("/{list_id}/settings", response_model=ListSettingsResponse)
async def update_list_settings(
    list_id: int,
    updates: ListSettingsUpdate,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
):
    """Update a list's feature toggles (owner/admin)."""
    list_obj = get_managed_list(db, list_id, current_user)
    settings = list_obj.settings

    for field, value in updates.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(settings, field, value.value if field == "sort_by" else value)

    db.commit()
    db.refresh(settings)
    publish_list_event(list_id, ListEventType.SETTINGS_UPDATED)
    return settings


@router.get("/{list_id}/statuses", response_model=list[ListStatusResponse])
async def get_statuses(
    list_id: int,
    current_user: Annotated[User | None, Depends(get_optional_user)],
    db: Annotated[Session, Depends(get_db)],
):
    """Get a list's custom statuses in order."""
    list_obj = get_readable_list(db, list_id, current_user)
    return list_obj.statuses


@router.post(
    "/{list_id}/statuses",
    response_model=ListStatusResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_status(
    list_id: int,
    status_data: ListStatusCreate,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
):
    """Append a custom status after the existing ones."""
    get_managed_list(db, list_id, current_user)

    max_position = (
        db.query(func.max(ListStatus.position)).filter(ListStatus.list_id == list_id).scalar()
    )
    list_status = ListStatus(
        list_id=list_id,
        name=status_data.name,
        position=(max_position if max_position is not None else -1) + 1,
    )
    db.add(list_status)
    db.commit()
    db.refresh(list_status)
    publish_list_event(list_id, ListEventType.STATUSES_UPDATED)
    return list_status


@router.delete("/{list_id}/statuses/{status_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_status(
    list_id: int,
    status_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
):
    """Delete a custom status."""
    get_managed_list(db, list_id, current_user)

    list_status = (
        db.query(ListStatus)
        .filter(ListStatus.id == status_id, ListStatus.list_id == list_id)
        .first()
    )
    if not list_status:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Status not found")

    db.delete(list_status)
    db.commit()
    publish_list_event(list_id, ListEventType.STATUSES_UPDATED)


@router.get("/{list_id}/items", response_model=list[ItemResponse])
async def get_items(
    list_id: int,
    current_user: Annotated[User | None, Depends(get_optional_user)],
    db: Annotated[Session, Depends(get_db)],
    sort_by: SortBy | None = Query(default=None, description="Override the list's default sort"),
):
    """Get a list's items with vote, rating and comment aggregates."""
    list_obj = get_readable_list(db, list_id, current_user)

    result = []
    for entry in list_items_for_user(
        db, list_obj, current_user.id if current_user else None, sort_by
    ):
        item_response = ItemResponse.model_validate(entry["item"])
        item_response.my_vote = entry["my_vote"]
        item_response.my_rating = entry["my_rating"]
        item_response.average_rating = entry["average_rating"]
        item_response.rating_count = entry["rating_count"]
        item_response.comment_count = entry["comment_count"]
        result.append(item_response)
    return result


@router.get("/{list_id}/members", response_model=list[MemberResponse])
async def get_members(
    list_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
):
    """Get a list's members, oldest first."""
    get_readable_list(db, list_id, current_user)

    members = (
        db.query(ListMember)
        .filter(ListMember.list_id == list_id)
        .order_by(ListMember.created_at, ListMember.id)
        .all()
    )
    result = []
    for member in members:
        member_response = MemberResponse.model_validate(member)
        member_response.email = member.user.email
        member_response.username = member.user.username
        result.append(member_response)
    return result


def get_member_or_404(db: Session, list_id: int, member_id: int) -> ListMember:
    member = (
        db.query(ListMember)
        .filter(ListMember.id == member_id, ListMember.list_id == list_id)
        .first()
    )
    if not member:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Member not found")
    return member


@router.put("/{list_id}/members/{member_id}", response_model=MemberResponse)
async def update_member_role(
    list_id: int,
    member_id: int,
    role_data: MemberRoleUpdate,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
):
    """Change a member's role.

    Nobody can grant the owner role or a role above their own, and admins
    can't change members who outrank them.
    """
    list_obj = get_managed_list(db, list_id, current_user)
    member = get_member_or_404(db, list_id, member_id)
    actor_role = access.get_list_role(db, list_obj, current_user.id)

    if not access.can_grant(actor_role, role_data.role) or not actor_role.at_least(
        MemberRole(member.role)
    ):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can't grant that role",
        )

    member.role = role_data.role.value
    db.commit()
    db.refresh(member)
    publish_list_event(
        list_id, ListEventType.MEMBER_UPDATED, {"user_id": member.user_id, "role": member.role}
    )

    member_response = MemberResponse.model_validate(member)
    member_response.email = member.user.email
    member_response.username = member.user.username
    return member_response


@router.delete("/{list_id}/members/{member_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_member(
    list_id: int,
    member_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
):
    """Remove a member. Members may always remove themselves."""
    list_obj = get_readable_list(db, list_id, current_user)
    member = get_member_or_404(db, list_id, member_id)

    if member.user_id != current_user.id:
        actor_role = access.get_list_role(db, list_obj, current_user.id)
        if (
            actor_role is None
            or not actor_role.can_admin()
            or not actor_role.at_least(MemberRole(member.role))
        ):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Only the owner or an admin can remove members",
            )

    removed_user_id = member.user_id
    db.delete(member)
    db.commit()
    publish_list_event(list_id, ListEventType.MEMBER_REMOVED, {"user_id": removed_user_id})
