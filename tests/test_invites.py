"""Tests for invite link creation and redemption."""

from datetime import UTC, datetime, timedelta
from unittest.mock import patch

import pytest
from conftest import TestingSessionLocal, add_member, headers_for, make_user
from sqlalchemy import update
from sqlalchemy.exc import OperationalError

from listshare.exceptions import (
    InvalidArgument,
    InvalidInvite,
    InviteExhausted,
    InviteExpired,
    NotFound,
    Unauthenticated,
)
from listshare.models import ListInviteLink, ListMember
from listshare.models.enums import MemberRole
from listshare.services.invites import InviteService, invite_url


def member_rows(db, list_id: int, user_id: int) -> int:
    return (
        db.query(ListMember)
        .filter(ListMember.list_id == list_id, ListMember.user_id == user_id)
        .count()
    )


class TestInviteLinkModel:
    """Tests for ListInviteLink helpers."""

    def test_token_is_generated(self, db, shared_list, owner):
        link = InviteService(db).create_link(shared_list.id, owner.id, "view")

        assert len(link.token) >= 43
        assert link.used_count == 0
        assert link.max_uses is None
        assert link.expires_at is None

    def test_tokens_are_unique(self, db, shared_list, owner):
        service = InviteService(db)
        tokens = {service.create_link(shared_list.id, owner.id, "view").token for _ in range(5)}

        assert len(tokens) == 5

    def test_is_expired(self):
        now = datetime.now(UTC)
        assert ListInviteLink(expires_at=now - timedelta(seconds=1)).is_expired(now)
        assert not ListInviteLink(expires_at=now + timedelta(hours=1)).is_expired(now)
        assert not ListInviteLink(expires_at=None).is_expired(now)

    def test_naive_expiry_treated_as_utc(self):
        past = datetime.now(UTC).replace(tzinfo=None) - timedelta(minutes=5)
        assert ListInviteLink(expires_at=past).is_expired()

    def test_is_exhausted(self):
        assert ListInviteLink(max_uses=1, used_count=1).is_exhausted
        assert not ListInviteLink(max_uses=2, used_count=1).is_exhausted
        assert not ListInviteLink(max_uses=None, used_count=50).is_exhausted

    def test_invite_url(self):
        assert invite_url("abc") == "listshare://invite/abc"


class TestCreateLink:
    """Tests for InviteService.create_link."""

    def test_sets_expiry_from_hours(self, db, shared_list, owner):
        before = datetime.now(UTC)
        link = InviteService(db).create_link(
            shared_list.id, owner.id, MemberRole.EDIT, max_uses=3, expires_hours=24
        )

        expires_at = link.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=UTC)
        assert before + timedelta(hours=23) < expires_at <= datetime.now(UTC) + timedelta(hours=24)
        assert link.role == "edit"
        assert link.max_uses == 3

    @pytest.mark.parametrize("role", ["owner", "superuser"])
    def test_rejects_ungrantable_roles(self, db, shared_list, owner, role):
        with pytest.raises(InvalidArgument):
            InviteService(db).create_link(shared_list.id, owner.id, role)

    def test_rejects_zero_max_uses(self, db, shared_list, owner):
        with pytest.raises(InvalidArgument):
            InviteService(db).create_link(shared_list.id, owner.id, "view", max_uses=0)

    def test_rejects_non_positive_hours(self, db, shared_list, owner):
        with pytest.raises(InvalidArgument):
            InviteService(db).create_link(shared_list.id, owner.id, "view", expires_hours=0)

    def test_missing_list(self, db, owner):
        with pytest.raises(NotFound):
            InviteService(db).create_link(999999, owner.id, "view")

    def test_list_and_delete_links(self, db, shared_list, owner):
        service = InviteService(db)
        first = service.create_link(shared_list.id, owner.id, "view")
        second = service.create_link(shared_list.id, owner.id, "edit")

        assert [link.id for link in service.list_links(shared_list.id)] == [second.id, first.id]

        service.delete_link(shared_list.id, first.id)
        assert [link.id for link in service.list_links(shared_list.id)] == [second.id]

        with pytest.raises(NotFound):
            service.delete_link(shared_list.id, first.id)


class TestRedeem:
    """Tests for InviteService.redeem."""

    def test_joins_with_link_role(self, db, shared_list, owner, editor):
        service = InviteService(db)
        link = service.create_link(shared_list.id, owner.id, "edit")

        result = service.redeem(link.token, editor.id)

        assert result.list_id == shared_list.id
        assert result.role == MemberRole.EDIT
        assert result.joined is True
        member = db.query(ListMember).filter(ListMember.user_id == editor.id).one()
        assert member.role == "edit"
        assert member.invited_by == owner.id
        db.refresh(link)
        assert link.used_count == 1

    def test_repeat_redemption_counts_each_use(self, db, shared_list, owner):
        """A joins, A redeems again (still one row, two uses), then B is turned away."""
        user_a = make_user(db, "a@example.com")
        user_b = make_user(db, "b@example.com")
        service = InviteService(db)
        link = service.create_link(shared_list.id, owner.id, "edit", max_uses=2)

        first = service.redeem(link.token, user_a.id)
        db.refresh(link)
        assert first.joined is True
        assert link.used_count == 1

        second = service.redeem(link.token, user_a.id)
        db.refresh(link)
        assert second.joined is False
        assert second.list_id == shared_list.id
        assert member_rows(db, shared_list.id, user_a.id) == 1
        assert link.used_count == 2

        with pytest.raises(InviteExhausted):
            service.redeem(link.token, user_b.id)
        assert member_rows(db, shared_list.id, user_b.id) == 0

    def test_single_use_link(self, db, shared_list, owner):
        user_a = make_user(db, "a@example.com")
        user_b = make_user(db, "b@example.com")
        service = InviteService(db)
        link = service.create_link(shared_list.id, owner.id, "edit", max_uses=1)

        service.redeem(link.token, user_a.id)

        with pytest.raises(InviteExhausted) as exc_info:
            service.redeem(link.token, user_b.id)
        assert exc_info.value.message == "This invite link has reached its maximum uses"
        db.refresh(link)
        assert link.used_count == 1
        assert member_rows(db, shared_list.id, user_b.id) == 0

    def test_existing_member_keeps_role(self, db, shared_list, owner, editor):
        add_member(db, shared_list, editor, role="admin")
        service = InviteService(db)
        link = service.create_link(shared_list.id, owner.id, "view")

        result = service.redeem(link.token, editor.id)

        assert result.joined is False
        member = db.query(ListMember).filter(ListMember.user_id == editor.id).one()
        assert member.role == "admin"

    def test_owner_redeem_is_noop(self, db, shared_list, owner):
        service = InviteService(db)
        link = service.create_link(shared_list.id, owner.id, "view")

        result = service.redeem(link.token, owner.id)

        assert result.joined is False
        assert result.list_id == shared_list.id
        assert member_rows(db, shared_list.id, owner.id) == 0
        db.refresh(link)
        assert link.used_count == 1

    def test_expired_link(self, db, shared_list, owner, editor):
        service = InviteService(db)
        link = service.create_link(shared_list.id, owner.id, "view", max_uses=5)
        link.expires_at = datetime.now(UTC) - timedelta(minutes=1)
        db.commit()

        with pytest.raises(InviteExpired) as exc_info:
            service.redeem(link.token, editor.id)

        assert exc_info.value.message == InvalidInvite().message
        db.refresh(link)
        assert link.used_count == 0
        assert member_rows(db, shared_list.id, editor.id) == 0

    def test_unknown_token(self, db, editor):
        with pytest.raises(InvalidInvite) as exc_info:
            InviteService(db).redeem("no-such-token", editor.id)
        assert exc_info.value.message == "Invalid or expired invite link"

    def test_unauthenticated_checked_first(self, db):
        with pytest.raises(Unauthenticated):
            InviteService(db).redeem("no-such-token", None)

    def test_two_links_one_membership(self, db, shared_list, owner, editor):
        service = InviteService(db)
        view_link = service.create_link(shared_list.id, owner.id, "view")
        edit_link = service.create_link(shared_list.id, owner.id, "edit")

        service.redeem(view_link.token, editor.id)
        result = service.redeem(edit_link.token, editor.id)

        assert result.joined is False
        assert member_rows(db, shared_list.id, editor.id) == 1

    def test_join_side_effects(self, db, shared_list, owner, editor, mock_redis, celery_delay):
        service = InviteService(db)
        link = service.create_link(shared_list.id, owner.id, "edit")

        service.redeem(link.token, editor.id)

        assert mock_redis.publish.call_count == 1
        payload = celery_delay.call_args[0][0]
        assert payload["type"] == "INSERT"
        assert payload["table"] == "list_members"
        assert payload["record"]["user_id"] == editor.id
        assert payload["record"]["list_id"] == shared_list.id

        mock_redis.reset_mock()
        celery_delay.reset_mock()
        service.redeem(link.token, editor.id)

        mock_redis.publish.assert_not_called()
        celery_delay.assert_not_called()

    def test_broker_outage_does_not_fail_redeem(self, db, shared_list, owner, editor, celery_delay):
        celery_delay.side_effect = ConnectionError("broker down")
        service = InviteService(db)
        link = service.create_link(shared_list.id, owner.id, "edit")

        result = service.redeem(link.token, editor.id)

        assert result.joined is True
        assert member_rows(db, shared_list.id, editor.id) == 1

    def test_lost_race_for_last_use_rolls_back_membership(self, db, shared_list, owner, editor):
        """Another redeemer takes the last use after our validation passed."""
        service = InviteService(db)
        link = service.create_link(shared_list.id, owner.id, "edit", max_uses=1)
        link_id = link.id
        validate = InviteService.get_valid_link

        def validate_then_lose_race(self, token):
            valid_link = validate(self, token)
            competitor = TestingSessionLocal()
            try:
                competitor.execute(
                    update(ListInviteLink)
                    .where(ListInviteLink.id == link_id)
                    .values(used_count=1)
                )
                competitor.commit()
            finally:
                competitor.close()
            return valid_link

        with patch.object(InviteService, "get_valid_link", validate_then_lose_race):
            with pytest.raises(InviteExhausted):
                service.redeem(link.token, editor.id)

        assert member_rows(db, shared_list.id, editor.id) == 0
        db.refresh(link)
        assert link.used_count == 1

    def test_counter_failure_keeps_membership(self, db, shared_list, owner, editor):
        service = InviteService(db)
        link = service.create_link(shared_list.id, owner.id, "edit")
        original_execute = db.execute

        def failing_update(statement, *args, **kwargs):
            if getattr(statement, "is_update", False):
                raise OperationalError("UPDATE", {}, Exception("store unavailable"))
            return original_execute(statement, *args, **kwargs)

        with patch.object(db, "execute", side_effect=failing_update):
            result = service.redeem(link.token, editor.id)

        assert result.joined is True
        assert member_rows(db, shared_list.id, editor.id) == 1
        db.refresh(link)
        assert link.used_count == 0


class TestInviteAPI:
    """Tests for the invite link endpoints."""

    def test_create_and_list_links(self, client, shared_list, owner):
        headers = headers_for(owner)

        response = client.post(
            f"/api/v1/lists/{shared_list.id}/invites",
            headers=headers,
            json={"role": "edit", "max_uses": 5, "expires_hours": 48},
        )
        assert response.status_code == 201
        data = response.json()
        assert data["role"] == "edit"
        assert data["used_count"] == 0
        assert data["url"] == f"listshare://invite/{data['token']}"

        response = client.get(f"/api/v1/lists/{shared_list.id}/invites", headers=headers)
        assert response.status_code == 200
        assert [link["id"] for link in response.json()] == [data["id"]]

    def test_editor_cannot_create_links(self, client, db, shared_list, editor):
        add_member(db, shared_list, editor, role="edit")

        response = client.post(
            f"/api/v1/lists/{shared_list.id}/invites",
            headers=headers_for(editor),
            json={"role": "view"},
        )

        assert response.status_code == 403

    def test_owner_role_not_grantable(self, client, shared_list, owner):
        response = client.post(
            f"/api/v1/lists/{shared_list.id}/invites",
            headers=headers_for(owner),
            json={"role": "owner"},
        )

        assert response.status_code == 403

    def test_admin_can_create_admin_links(self, client, db, shared_list, editor):
        add_member(db, shared_list, editor, role="admin")

        response = client.post(
            f"/api/v1/lists/{shared_list.id}/invites",
            headers=headers_for(editor),
            json={"role": "admin"},
        )

        assert response.status_code == 201

    def test_delete_link(self, client, db, shared_list, owner):
        link = InviteService(db).create_link(shared_list.id, owner.id, "view")

        response = client.delete(
            f"/api/v1/lists/{shared_list.id}/invites/{link.id}", headers=headers_for(owner)
        )

        assert response.status_code == 204
        assert db.query(ListInviteLink).count() == 0

    def test_preview(self, client, db, shared_list, owner):
        link = InviteService(db).create_link(shared_list.id, owner.id, "edit")

        response = client.get(f"/api/v1/invites/{link.token}")

        assert response.status_code == 200
        assert response.json() == {
            "list_id": shared_list.id,
            "list_name": shared_list.name,
            "role": "edit",
        }

    def test_redeem(self, client, db, shared_list, owner, editor):
        link = InviteService(db).create_link(shared_list.id, owner.id, "edit")

        response = client.post(f"/api/v1/invites/{link.token}/redeem", headers=headers_for(editor))

        assert response.status_code == 200
        assert response.json() == {"list_id": shared_list.id, "role": "edit", "joined": True}

        response = client.get(f"/api/v1/lists/{shared_list.id}", headers=headers_for(editor))
        assert response.status_code == 200
        assert response.json()["my_role"] == "edit"

    def test_redeem_anonymous_echoes_token(self, client, db, shared_list, owner):
        link = InviteService(db).create_link(shared_list.id, owner.id, "edit")

        response = client.post(f"/api/v1/invites/{link.token}/redeem")

        assert response.status_code == 401
        assert response.json()["detail"]["invite_token"] == link.token
        assert db.query(ListMember).count() == 0

    def test_unknown_and_expired_look_the_same(self, client, db, shared_list, owner, editor):
        service = InviteService(db)
        link = service.create_link(shared_list.id, owner.id, "view")
        link.expires_at = datetime.now(UTC) - timedelta(hours=1)
        db.commit()
        headers = headers_for(editor)

        expired = client.post(f"/api/v1/invites/{link.token}/redeem", headers=headers)
        unknown = client.post("/api/v1/invites/not-a-real-token/redeem", headers=headers)

        assert expired.status_code == unknown.status_code == 404
        assert expired.json() == unknown.json()
        assert unknown.json() == {"detail": "Invalid or expired invite link", "code": "invalid_invite"}

    def test_redeem_exhausted(self, client, db, shared_list, owner, editor, outsider):
        link = InviteService(db).create_link(shared_list.id, owner.id, "view", max_uses=1)

        client.post(f"/api/v1/invites/{link.token}/redeem", headers=headers_for(editor))
        response = client.post(f"/api/v1/invites/{link.token}/redeem", headers=headers_for(outsider))

        assert response.status_code == 410
        assert response.json()["code"] == "invite_exhausted"
