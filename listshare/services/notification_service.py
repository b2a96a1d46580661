"""Push notifications for store change events, delivered through Expo."""

import logging
from typing import Any

import httpx
from sqlalchemy.orm import Session

from listshare.config import get_settings
from listshare.models import List, ListItem, ListItemComment, ListMember, UserPushToken

logger = logging.getLogger(__name__)

COMMENT_PREVIEW_LENGTH = 100


def build_push_message(token: str, title: str, body: str, data: dict[str, Any]) -> dict:
    """Expo push message for one device."""
    return {
        "to": token,
        "title": title,
        "body": body,
        "data": data,
        "sound": "default",
        "badge": 1,
    }


class NotificationService:
    """Resolves recipients for an inserted row and pushes to their devices.

    Delivery is best-effort: failures are logged and counted, never raised,
    because the triggering insert has already committed.
    """

    def __init__(self, db: Session, http_client: httpx.Client | None = None) -> None:
        self.db = db
        self.settings = get_settings()
        self._http_client = http_client

    def handle_change_event(self, payload: dict) -> int:
        """Handle one change event and return the number of messages sent."""
        if payload.get("type") != "INSERT":
            logger.debug(f"Skipping {payload.get('type')} event on {payload.get('table')}")
            return 0

        table = payload.get("table")
        record = payload.get("record") or {}
        if table == "list_items":
            messages = self._new_item_messages(record)
        elif table == "list_item_comments":
            messages = self._new_comment_messages(record)
        elif table == "list_members":
            messages = self._new_member_messages(record)
        else:
            logger.info(f"No notifications configured for table {table}")
            return 0

        return self.send_push_messages(messages)

    def get_tokens_for_users(self, user_ids: list[int] | set[int]) -> list[str]:
        """Resolve device tokens for many users in one query."""
        if not user_ids:
            return []
        rows = (
            self.db.query(UserPushToken.token)
            .filter(UserPushToken.user_id.in_(list(user_ids)))
            .all()
        )
        return [token for (token,) in rows]

    def _list_name(self, list_id: Any) -> str | None:
        return self.db.query(List.name).filter(List.id == list_id).scalar()

    def _new_item_messages(self, record: dict) -> list[dict]:
        """Everyone with access to the list except the item's creator."""
        list_id = record.get("list_id")
        creator_id = record.get("user_id")

        recipient_ids = {
            user_id
            for (user_id,) in self.db.query(ListMember.user_id)
            .filter(ListMember.list_id == list_id, ListMember.user_id != creator_id)
            .all()
        }
        owner_id = self.db.query(List.owner_id).filter(List.id == list_id).scalar()
        if owner_id is not None and owner_id != creator_id:
            recipient_ids.add(owner_id)

        list_name = self._list_name(list_id) or "a list"
        return [
            build_push_message(
                token,
                title=f'New item in "{list_name}"',
                body=str(record.get("title", "")),
                data={"type": "new_item", "list_id": list_id},
            )
            for token in self.get_tokens_for_users(recipient_ids)
        ]

    def _new_comment_messages(self, record: dict) -> list[dict]:
        """The item's creator and every earlier commenter, minus the author."""
        item_id = record.get("list_item_id")
        author_id = record.get("user_id")

        item = self.db.query(ListItem).filter(ListItem.id == item_id).first()
        if item is None:
            logger.warning(f"Comment event for missing item {item_id}")
            return []

        recipient_ids = {
            user_id
            for (user_id,) in self.db.query(ListItemComment.user_id)
            .filter(ListItemComment.list_item_id == item_id, ListItemComment.user_id != author_id)
            .distinct()
            .all()
        }
        if item.user_id != author_id:
            recipient_ids.add(item.user_id)

        body = str(record.get("comment", ""))[:COMMENT_PREVIEW_LENGTH]
        return [
            build_push_message(
                token,
                title=f'New comment on "{item.title}"',
                body=body,
                data={"type": "new_comment", "list_id": item.list_id, "item_id": item_id},
            )
            for token in self.get_tokens_for_users(recipient_ids)
        ]

    def _new_member_messages(self, record: dict) -> list[dict]:
        """The newly added member."""
        list_id = record.get("list_id")
        user_id = record.get("user_id")
        if user_id is None:
            return []

        list_name = self._list_name(list_id)
        return [
            build_push_message(
                token,
                title="You were added to a list",
                body=f'You now have access to "{list_name}"',
                data={"type": "new_member", "list_id": list_id},
            )
            for token in self.get_tokens_for_users([user_id])
        ]

    def send_push_messages(self, messages: list[dict]) -> int:
        """POST messages to Expo in chunks.

        Returns the number of messages in chunks Expo accepted.
        """
        if not messages:
            return 0

        headers = {"Accept": "application/json", "Content-Type": "application/json"}
        if self.settings.expo_access_token:
            headers["Authorization"] = f"Bearer {self.settings.expo_access_token}"

        size = self.settings.push_chunk_size
        chunks = [messages[i : i + size] for i in range(0, len(messages), size)]

        client = self._http_client or httpx.Client(timeout=self.settings.push_timeout_seconds)
        sent = 0
        try:
            for chunk in chunks:
                try:
                    response = client.post(self.settings.expo_push_url, json=chunk, headers=headers)
                    response.raise_for_status()
                    sent += len(chunk)
                except httpx.HTTPError as e:
                    logger.error(f"Push delivery failed for {len(chunk)} messages: {e}")
        finally:
            if self._http_client is None:
                client.close()

        logger.info(f"Sent {sent}/{len(messages)} push messages")
        return sent


def get_notification_service(db: Session) -> NotificationService:
    """Get a notification service instance."""
    return NotificationService(db)
