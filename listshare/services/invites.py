"""Invite link creation and redemption."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from sqlalchemy import or_, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from listshare.config import get_settings
from listshare.database import upsert_insert
from listshare.exceptions import (
    InvalidArgument,
    InvalidInvite,
    InviteExhausted,
    InviteExpired,
    NotFound,
    Unauthenticated,
)
from listshare.models.enums import MemberRole
from listshare.models.invite_link import ListInviteLink
from listshare.models.list import List, ListMember
from listshare.services.realtime import ListEventType, publish_list_event
from listshare.tasks.notifications import enqueue_change_event

logger = logging.getLogger(__name__)


@dataclass
class RedeemResult:
    """Outcome of a successful redemption."""

    list_id: int
    role: MemberRole
    joined: bool


def invite_url(token: str) -> str:
    """Deep link that opens the invite in the app."""
    return f"{get_settings().app_scheme}://invite/{token}"


class InviteService:
    """Creates invite links and redeems them into list memberships."""

    def __init__(self, db: Session):
        self.db = db

    def create_link(
        self,
        list_id: int,
        created_by: int,
        role: MemberRole | str,
        max_uses: int | None = None,
        expires_hours: float | None = None,
    ) -> ListInviteLink:
        """Create a new link with ``used_count`` 0.

        Permission to create links for the list is checked by the caller.
        """
        try:
            role = MemberRole(role)
        except ValueError:
            raise InvalidArgument(f"Unknown role: {role}") from None
        if role not in MemberRole.grantable():
            raise InvalidArgument("Invite links cannot grant ownership")
        if max_uses is not None and max_uses < 1:
            raise InvalidArgument("max_uses must be at least 1")
        if expires_hours is not None and expires_hours <= 0:
            raise InvalidArgument("expires_hours must be positive")

        if self.db.query(List.id).filter(List.id == list_id).first() is None:
            raise NotFound("List not found")

        expires_at = None
        if expires_hours is not None:
            expires_at = datetime.now(UTC) + timedelta(hours=expires_hours)

        link = ListInviteLink(
            list_id=list_id,
            created_by=created_by,
            role=role.value,
            max_uses=max_uses,
            expires_at=expires_at,
            used_count=0,
        )
        self.db.add(link)
        self.db.commit()
        self.db.refresh(link)
        logger.info(f"Invite link {link.id} created for list {list_id} (role={role.value})")
        return link

    def list_links(self, list_id: int) -> list[ListInviteLink]:
        """Get a list's invite links, newest first."""
        return (
            self.db.query(ListInviteLink)
            .filter(ListInviteLink.list_id == list_id)
            .order_by(ListInviteLink.created_at.desc(), ListInviteLink.id.desc())
            .all()
        )

    def delete_link(self, list_id: int, link_id: int) -> None:
        link = (
            self.db.query(ListInviteLink)
            .filter(ListInviteLink.id == link_id, ListInviteLink.list_id == list_id)
            .first()
        )
        if link is None:
            raise NotFound("Invite link not found")
        self.db.delete(link)
        self.db.commit()

    def get_valid_link(self, token: str) -> ListInviteLink:
        """Look up a token and check it can still be redeemed.

        Unknown and expired tokens fail with the same message.
        """
        link = self.db.query(ListInviteLink).filter(ListInviteLink.token == token).first()
        if link is None:
            raise InvalidInvite()
        if link.is_expired():
            raise InviteExpired()
        if link.is_exhausted:
            raise InviteExhausted()
        return link

    def redeem(self, token: str, user_id: int | None) -> RedeemResult:
        """Redeem a token into a membership on the link's list.

        Membership is granted at most once per (list, user). Every redemption
        that passes validation counts as a use, including repeat redemptions
        by users who are already members. The use is claimed with a
        conditional UPDATE so concurrent redeemers can never push
        ``used_count`` past ``max_uses``.
        """
        if user_id is None:
            raise Unauthenticated("You must be signed in to join a list")

        link = self.get_valid_link(token)
        list_id = link.list_id
        role = MemberRole(link.role)
        owner_id = self.db.query(List.owner_id).filter(List.id == list_id).scalar()

        member_id = None
        if owner_id != user_id:
            member_id = self._insert_membership(link, user_id)

        if not self._claim_use(link.id):
            self.db.rollback()
            logger.info(f"Invite link {link.id} exhausted by a concurrent redemption")
            raise InviteExhausted()

        self.db.commit()

        joined = member_id is not None
        if joined:
            logger.info(f"User {user_id} joined list {list_id} via invite link {link.id}")
            publish_list_event(
                list_id, ListEventType.MEMBER_JOINED, {"user_id": user_id, "role": role.value}
            )
            enqueue_change_event(
                "list_members",
                {
                    "id": member_id,
                    "list_id": list_id,
                    "user_id": user_id,
                    "role": role.value,
                    "invited_by": link.created_by,
                },
            )
        return RedeemResult(list_id=list_id, role=role, joined=joined)

    def _insert_membership(self, link: ListInviteLink, user_id: int) -> int | None:
        """Insert the membership unless one exists; return the new row id."""
        table = ListMember.__table__
        stmt = (
            upsert_insert(self.db, table)
            .values(
                list_id=link.list_id,
                user_id=user_id,
                role=link.role,
                invited_by=link.created_by,
            )
            .on_conflict_do_nothing(index_elements=["list_id", "user_id"])
            .returning(table.c.id)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def _claim_use(self, link_id: int) -> bool:
        """Add one use to a link unless that would exceed ``max_uses``.

        Returns False only when the link has no uses left. Any other store
        failure is logged and treated as claimed: the member keeps access and
        the link under-reports its uses.
        """
        table = ListInviteLink.__table__
        try:
            with self.db.begin_nested():
                result = self.db.execute(
                    update(table)
                    .where(
                        table.c.id == link_id,
                        or_(table.c.max_uses.is_(None), table.c.used_count < table.c.max_uses),
                    )
                    .values(used_count=table.c.used_count + 1)
                )
        except SQLAlchemyError:
            logger.error(f"Failed to record use of invite link {link_id}", exc_info=True)
            return True
        return result.rowcount == 1
