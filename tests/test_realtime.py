"""Tests for the per-list change stream."""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from starlette.websockets import WebSocketDisconnect

import listshare.services.realtime as realtime_module
from listshare.services.auth import create_access_token
from listshare.services.realtime import (
    ListEventType,
    ListSubscription,
    get_sync_redis,
    list_channel,
    publish_list_event,
)


class TestListEventType:
    """Tests for ListEventType enum."""

    def test_item_events_exist(self):
        assert ListEventType.ITEM_VOTED == "item_voted"
        assert ListEventType.ITEM_RATED == "item_rated"
        assert ListEventType.COMMENT_ADDED == "comment_added"
        assert ListEventType.COMMENT_DELETED == "comment_deleted"

    def test_membership_events_exist(self):
        assert ListEventType.MEMBER_JOINED == "member_joined"
        assert ListEventType.MEMBER_UPDATED == "member_updated"
        assert ListEventType.MEMBER_REMOVED == "member_removed"

    def test_channel_name(self):
        assert list_channel(42) == "list:42"


class TestGetSyncRedis:
    """Tests for get_sync_redis function."""

    def test_creates_redis_client(self, monkeypatch):
        monkeypatch.setattr(realtime_module, "_sync_redis", None)

        with patch("listshare.services.realtime.redis.from_url") as mock_from_url:
            mock_client = MagicMock()
            mock_from_url.return_value = mock_client

            result = get_sync_redis()

            assert result == mock_client
            mock_from_url.assert_called_once()

    def test_reuses_existing_client(self, mock_redis):
        with patch("listshare.services.realtime.redis.from_url") as mock_from_url:
            result = get_sync_redis()

            assert result == mock_redis
            mock_from_url.assert_not_called()


class TestPublishListEvent:
    """Tests for publish_list_event function."""

    def test_publishes_event_to_correct_channel(self, mock_redis):
        publish_list_event(123, ListEventType.MEMBER_JOINED, {"user_id": 456})

        mock_redis.publish.assert_called_once()
        call_args = mock_redis.publish.call_args
        assert call_args[0][0] == "list:123"

        message = json.loads(call_args[0][1])
        assert message["type"] == "member_joined"
        assert message["list_id"] == 123
        assert message["data"] == {"user_id": 456}
        assert "timestamp" in message

    def test_publishes_event_without_data(self, mock_redis):
        publish_list_event(123, ListEventType.LIST_UPDATED)

        message = json.loads(mock_redis.publish.call_args[0][1])
        assert message["data"] == {}

    def test_handles_redis_error_gracefully(self, mock_redis):
        mock_redis.publish.side_effect = Exception("Redis connection failed")

        # Should not raise exception
        publish_list_event(123, ListEventType.ITEM_VOTED, {"item_id": 456})


def fake_pubsub(*messages) -> MagicMock:
    pubsub = MagicMock()

    async def listen():
        for message in messages:
            yield message

    pubsub.listen = listen
    pubsub.subscribe = AsyncMock()
    pubsub.unsubscribe = AsyncMock()
    pubsub.aclose = AsyncMock()
    return pubsub


class TestListSubscription:
    """Tests for the async subscriber side of the change stream."""

    @pytest.mark.asyncio
    async def test_creates_connection_from_settings(self):
        redis_client = MagicMock()
        redis_client.pubsub.return_value = fake_pubsub()
        redis_client.aclose = AsyncMock()

        with patch(
            "listshare.services.realtime.aioredis.from_url", return_value=redis_client
        ) as mock_from_url:
            async with ListSubscription(5):
                pass

        mock_from_url.assert_called_once()
        redis_client.aclose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_yields_list_events_only(self):
        """Skips subscribe confirmations and bad JSON."""
        event = {"type": "item_voted", "list_id": 123}
        pubsub = fake_pubsub(
            {"type": "subscribe", "data": 1},
            {"type": "message", "data": "not valid json"},
            {"type": "message", "data": json.dumps(event)},
        )
        redis_client = MagicMock()
        redis_client.pubsub.return_value = pubsub
        redis_client.aclose = AsyncMock()

        async with ListSubscription(123, redis_client) as subscription:
            messages = [msg async for msg in subscription]

        assert messages == [event]
        pubsub.subscribe.assert_awaited_once_with("list:123")
        pubsub.unsubscribe.assert_awaited_once_with("list:123")
        pubsub.aclose.assert_awaited_once()
        redis_client.aclose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_closes_on_error(self):
        pubsub = fake_pubsub()
        redis_client = MagicMock()
        redis_client.pubsub.return_value = pubsub
        redis_client.aclose = AsyncMock()

        with pytest.raises(RuntimeError):
            async with ListSubscription(1, redis_client):
                raise RuntimeError("client went away")

        pubsub.unsubscribe.assert_awaited_once_with("list:1")
        redis_client.aclose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_iterating_closed_subscription_fails(self):
        with pytest.raises(RuntimeError):
            async for _ in ListSubscription(1, MagicMock()):
                pass


class FakeSubscription:
    """Stands in for ListSubscription, replaying one event."""

    opened: list[int] = []
    closed: list[int] = []

    def __init__(self, list_id: int) -> None:
        self.list_id = list_id

    async def __aenter__(self) -> "FakeSubscription":
        FakeSubscription.opened.append(self.list_id)
        return self

    async def __aexit__(self, *exc_info) -> None:
        FakeSubscription.closed.append(self.list_id)

    async def __aiter__(self):
        yield {"type": "item_voted", "list_id": self.list_id, "data": {"item_id": 1}}


@pytest.fixture
def ws_session(db):
    """Point the WebSocket endpoint's own session at the test database."""
    with patch("listshare.api.websocket.SessionLocal", return_value=db):
        yield db


class TestWebSocketEndpoint:
    """Tests for the list change-stream WebSocket."""

    def test_websocket_requires_token(self, client):
        with pytest.raises(WebSocketDisconnect), client.websocket_connect("/api/v1/ws/lists/1"):
            pass

    def test_websocket_rejects_invalid_token(self, client, ws_session):
        with (
            pytest.raises(WebSocketDisconnect) as exc_info,
            client.websocket_connect("/api/v1/ws/lists/1?token=invalid_token"),
        ):
            pass
        assert exc_info.value.code == 4001

    def test_websocket_rejects_nonexistent_user(self, client, ws_session):
        fake_token = create_access_token(user_id=99999, email="fake@example.com")
        with (
            pytest.raises(WebSocketDisconnect) as exc_info,
            client.websocket_connect(f"/api/v1/ws/lists/1?token={fake_token}"),
        ):
            pass
        assert exc_info.value.code == 4001

    def test_websocket_rejects_unreadable_list(self, client, ws_session, shared_list, outsider):
        token = create_access_token(outsider.id, outsider.email)
        list_id = shared_list.id
        with (
            pytest.raises(WebSocketDisconnect) as exc_info,
            client.websocket_connect(f"/api/v1/ws/lists/{list_id}?token={token}"),
        ):
            pass
        assert exc_info.value.code == 4003

    def test_websocket_forwards_list_events(self, client, ws_session, shared_list, owner):
        token = create_access_token(owner.id, owner.email)
        list_id = shared_list.id
        FakeSubscription.opened.clear()
        FakeSubscription.closed.clear()

        with patch("listshare.api.websocket.ListSubscription", FakeSubscription):
            with client.websocket_connect(f"/api/v1/ws/lists/{list_id}?token={token}") as ws:
                message = ws.receive_json()

        assert message == {"type": "item_voted", "list_id": list_id, "data": {"item_id": 1}}
        assert FakeSubscription.opened == [list_id]
        assert FakeSubscription.closed == [list_id]
