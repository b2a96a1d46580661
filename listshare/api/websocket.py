"""WebSocket endpoint streaming a list's change events."""

import asyncio
import logging

from fastapi import APIRouter, HTTPException, Query, WebSocket, WebSocketDisconnect

from listshare.api.dependencies import get_readable_list
from listshare.database import SessionLocal
from listshare.services.auth import resolve_session_user
from listshare.services.realtime import ListSubscription

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/ws", tags=["websocket"])

PING_INTERVAL_SECONDS = 30

# Close codes in the application range
CLOSE_INVALID_TOKEN = 4001
CLOSE_ACCESS_DENIED = 4003


def authorize(token: str, list_id: int) -> tuple[int | None, int | None]:
    """Resolve the token and check read access.

    Returns ``(user_id, None)`` on success or ``(None, close_code)``.
    """
    # WebSocket routes can't use the get_db dependency
    db = SessionLocal()
    try:
        user = resolve_session_user(db, token)
        if user is None:
            return None, CLOSE_INVALID_TOKEN
        try:
            get_readable_list(db, list_id, user)
        except HTTPException:
            return None, CLOSE_ACCESS_DENIED
        return user.id, None
    finally:
        db.close()


async def forward_events(websocket: WebSocket, subscription: ListSubscription) -> None:
    async for event in subscription:
        await websocket.send_json(event)


async def keep_alive(websocket: WebSocket) -> None:
    """Ping the client periodically and drain whatever it sends back."""

    async def ping() -> None:
        while True:
            await asyncio.sleep(PING_INTERVAL_SECONDS)
            await websocket.send_json({"type": "ping"})

    pinger = asyncio.create_task(ping())
    try:
        while True:
            # Clients only ever send pongs
            await websocket.receive_json()
    finally:
        pinger.cancel()


@router.websocket("/lists/{list_id}")
async def websocket_list_sync(
    websocket: WebSocket,
    list_id: int,
    token: str = Query(...),
) -> None:
    """Push every change event published for a list to the client.

    The session token travels in the query string since browsers can't set
    headers on WebSocket requests. Events are invalidation hints: clients
    refetch what they show when one arrives.
    """
    user_id, close_code = authorize(token, list_id)
    if close_code is not None:
        reason = "Invalid token" if close_code == CLOSE_INVALID_TOKEN else "Access denied"
        await websocket.close(code=close_code, reason=reason)
        return

    await websocket.accept()
    logger.info(f"WebSocket connected: user={user_id}, list={list_id}")

    try:
        async with ListSubscription(list_id) as subscription:
            tasks = [
                asyncio.create_task(forward_events(websocket, subscription)),
                asyncio.create_task(keep_alive(websocket)),
            ]
            # Either side ending tears down the other
            done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)
            for task in done:
                error = task.exception()
                if error is not None and not isinstance(error, WebSocketDisconnect):
                    logger.error(f"WebSocket stream for list {list_id} failed: {error!r}")
    except Exception as e:
        logger.error(f"WebSocket error: {e}", exc_info=True)
    finally:
        logger.info(f"WebSocket disconnected: user={user_id}, list={list_id}")
