"""FastAPI dependencies for authentication, database and list access."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from listshare.database import get_db
from listshare.models.item import ListItem
from listshare.models.list import List
from listshare.models.user import User
from listshare.services import access
from listshare.services.auth import resolve_session_user
from listshare.services.invites import InviteService
from listshare.services.voting import VoteService

security = HTTPBearer()
optional_security = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
) -> User:
    """Get the current authenticated user from JWT token."""
    user = resolve_session_user(db, credentials.credentials)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def get_optional_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(optional_security)],
    db: Annotated[Session, Depends(get_db)],
) -> User | None:
    """Get the current user, or None when the request carries no valid session.

    Used where the service itself decides what an anonymous caller gets.
    """
    if credentials is None:
        return None
    return resolve_session_user(db, credentials.credentials)


def get_readable_list(db: Session, list_id: int, user: User | None) -> List:
    """Get a list the user may read.

    Lists the user can't see are reported as missing.
    """
    list_obj = db.query(List).filter(List.id == list_id).first()
    if list_obj is None or not access.can_read(db, list_obj, user.id if user else None):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="List not found")
    return list_obj


def get_managed_list(db: Session, list_id: int, user: User) -> List:
    """Get a list the user may administer (owner or admin member)."""
    list_obj = get_readable_list(db, list_id, user)
    if not access.can_manage(db, list_obj, user.id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the owner or an admin can manage this list",
        )
    return list_obj


def get_contributable_item(db: Session, item_id: int, user: User) -> ListItem:
    """Get an item whose list the user may vote, rate and comment on."""
    item = db.query(ListItem).filter(ListItem.id == item_id).first()
    if item is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Item not found")

    list_obj = get_readable_list(db, item.list_id, user)
    if not access.can_contribute(db, list_obj, user.id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You don't have permission to contribute to this list",
        )
    return item


def get_vote_service(
    db: Annotated[Session, Depends(get_db)],
) -> VoteService:
    """Get vote service with dependencies."""
    return VoteService(db)


def get_invite_service(
    db: Annotated[Session, Depends(get_db)],
) -> InviteService:
    """Get invite service with dependencies."""
    return InviteService(db)
