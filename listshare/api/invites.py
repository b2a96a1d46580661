"""Invite link API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from listshare.api.dependencies import (
    get_current_user,
    get_invite_service,
    get_managed_list,
    get_optional_user,
)
from listshare.database import get_db
from listshare.exceptions import Unauthenticated
from listshare.models.enums import MemberRole
from listshare.models.invite_link import ListInviteLink
from listshare.models.user import User
from listshare.schemas.invite import (
    InviteLinkCreate,
    InviteLinkResponse,
    InvitePreview,
    RedeemResponse,
)
from listshare.services import access
from listshare.services.invites import InviteService, invite_url

router = APIRouter(prefix="/api/v1", tags=["invites"])


def to_link_response(link: ListInviteLink) -> InviteLinkResponse:
    link_response = InviteLinkResponse.model_validate(link)
    link_response.url = invite_url(link.token)
    return link_response


@router.get("/lists/{list_id}/invites", response_model=list[InviteLinkResponse])
def get_invite_links(
    list_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
    invite_service: Annotated[InviteService, Depends(get_invite_service)],
):
    """Get a list's invite links, newest first (owner/admin)."""
    get_managed_list(db, list_id, current_user)
    return [to_link_response(link) for link in invite_service.list_links(list_id)]


@router.post(
    "/lists/{list_id}/invites",
    response_model=InviteLinkResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_invite_link(
    list_id: int,
    link_data: InviteLinkCreate,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
    invite_service: Annotated[InviteService, Depends(get_invite_service)],
):
    """Create an invite link (owner/admin, for roles up to their own)."""
    list_obj = get_managed_list(db, list_id, current_user)
    actor_role = access.get_list_role(db, list_obj, current_user.id)
    if not access.can_grant(actor_role, link_data.role):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can't create invites for that role",
        )

    link = invite_service.create_link(
        list_id,
        current_user.id,
        link_data.role,
        max_uses=link_data.max_uses,
        expires_hours=link_data.expires_hours,
    )
    return to_link_response(link)


@router.delete("/lists/{list_id}/invites/{link_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_invite_link(
    list_id: int,
    link_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
    invite_service: Annotated[InviteService, Depends(get_invite_service)],
):
    """Revoke an invite link (owner/admin)."""
    get_managed_list(db, list_id, current_user)
    invite_service.delete_link(list_id, link_id)


@router.get("/invites/{token}", response_model=InvitePreview)
def preview_invite(
    token: str,
    invite_service: Annotated[InviteService, Depends(get_invite_service)],
):
    """Show what an invite grants without redeeming it."""
    link = invite_service.get_valid_link(token)
    return InvitePreview(list_id=link.list_id, list_name=link.list.name, role=MemberRole(link.role))


@router.post("/invites/{token}/redeem", response_model=RedeemResponse)
def redeem_invite(
    token: str,
    current_user: Annotated[User | None, Depends(get_optional_user)],
    invite_service: Annotated[InviteService, Depends(get_invite_service)],
):
    """Join the invite's list as the current user.

    Anonymous callers get a 401 that echoes the token so the client can
    retry once the user has signed in.
    """
    try:
        result = invite_service.redeem(token, current_user.id if current_user else None)
    except Unauthenticated as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"message": e.message, "invite_token": token},
            headers={"WWW-Authenticate": "Bearer"},
        ) from None

    return RedeemResponse(list_id=result.list_id, role=result.role, joined=result.joined)
