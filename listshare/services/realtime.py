"""Per-list change stream over Redis pub/sub.

Mutations publish a small event on ``list:<id>`` after they commit. Clients
subscribed to the channel drop their cached reads of the list when an event
arrives, so staleness heals on the next fetch.
"""

import json
import logging
from collections.abc import AsyncIterator
from datetime import UTC, datetime
from enum import StrEnum
from typing import TYPE_CHECKING

import redis
import redis.asyncio as aioredis

from listshare.config import get_settings

if TYPE_CHECKING:
    from redis.asyncio.client import PubSub

logger = logging.getLogger(__name__)
settings = get_settings()


class ListEventType(StrEnum):
    """Event types for list updates."""

    # Item events
    ITEM_VOTED = "item_voted"
    ITEM_RATED = "item_rated"
    COMMENT_ADDED = "comment_added"
    COMMENT_DELETED = "comment_deleted"

    # Membership events
    MEMBER_JOINED = "member_joined"
    MEMBER_UPDATED = "member_updated"
    MEMBER_REMOVED = "member_removed"

    # List events
    LIST_UPDATED = "list_updated"
    SETTINGS_UPDATED = "settings_updated"
    STATUSES_UPDATED = "statuses_updated"


def list_channel(list_id: int) -> str:
    return f"list:{list_id}"


# Synchronous Redis client for use in API endpoints
_sync_redis: redis.Redis | None = None


def get_sync_redis() -> redis.Redis:
    """Get synchronous Redis client for publishing from API endpoints."""
    global _sync_redis
    if _sync_redis is None:
        _sync_redis = redis.from_url(settings.redis_url)
    return _sync_redis


def publish_list_event(list_id: int, event_type: ListEventType, data: dict | None = None) -> None:
    """Publish an event to a list's Redis channel.

    Called from services after their transaction commits. Failures are
    logged and never propagate to the caller.

    Args:
        list_id: The list ID to publish to
        event_type: Type of event (item_voted, member_joined, etc.)
        data: Optional event payload
    """
    try:
        redis_client = get_sync_redis()
        channel = list_channel(list_id)
        message = {
            "type": event_type,
            "list_id": list_id,
            "timestamp": datetime.now(UTC).isoformat(),
            "data": data or {},
        }
        redis_client.publish(channel, json.dumps(message))
        logger.debug(f"Published {event_type} to {channel}")
    except Exception as e:
        logger.error(f"Failed to publish list event: {e}")


class ListSubscription:
    """Subscription to one list's change stream.

    Used as an async context manager; iterating yields decoded events until
    the block exits, which unsubscribes and closes the connection::

        async with ListSubscription(list_id) as events:
            async for event in events:
                ...
    """

    def __init__(self, list_id: int, redis_client: aioredis.Redis | None = None) -> None:
        self.list_id = list_id
        self.channel = list_channel(list_id)
        self._redis = redis_client
        self._pubsub: PubSub | None = None

    async def __aenter__(self) -> "ListSubscription":
        if self._redis is None:
            self._redis = aioredis.from_url(settings.redis_url)
        self._pubsub = self._redis.pubsub()
        await self._pubsub.subscribe(self.channel)
        logger.debug(f"Subscribed to {self.channel}")
        return self

    async def __aexit__(self, *exc_info) -> None:
        if self._pubsub is not None:
            try:
                await self._pubsub.unsubscribe(self.channel)
            finally:
                await self._pubsub.aclose()
                self._pubsub = None
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None

    async def __aiter__(self) -> AsyncIterator[dict]:
        if self._pubsub is None:
            raise RuntimeError("Subscription is not open")
        async for message in self._pubsub.listen():
            if message["type"] != "message":
                continue
            try:
                yield json.loads(message["data"])
            except json.JSONDecodeError:
                logger.warning(f"Invalid JSON on {self.channel}: {message['data']!r}")
