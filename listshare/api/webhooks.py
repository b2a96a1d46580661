"""Webhook endpoint for database change events."""

import hmac
import logging
from typing import Annotated

from fastapi import APIRouter, Header, HTTPException, status

from listshare.config import get_settings
from listshare.schemas.notification import ChangeEvent, ChangeEventAccepted
from listshare.tasks.notifications import dispatch_change_event

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/webhooks", tags=["webhooks"])


def verify_webhook_secret(authorization: str | None) -> None:
    """Require ``Authorization: Bearer <WEBHOOK_SECRET>``."""
    secret = get_settings().webhook_secret
    expected = f"Bearer {secret}"
    if not secret or not authorization or not hmac.compare_digest(authorization, expected):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")


@router.post("/db-change", response_model=ChangeEventAccepted, status_code=status.HTTP_202_ACCEPTED)
async def handle_db_change(
    event: ChangeEvent,
    authorization: Annotated[str | None, Header()] = None,
) -> ChangeEventAccepted:
    """Queue push notifications for a row change.

    Only INSERT events notify anyone; delivery happens in a Celery worker so
    the store's webhook call returns immediately.
    """
    verify_webhook_secret(authorization)

    if event.type != "INSERT":
        return ChangeEventAccepted(queued=False, skipped=True)

    logger.info(f"Received {event.type} on {event.table}")
    try:
        dispatch_change_event.delay(event.model_dump(by_alias=True))
    except Exception as e:
        # The store retries deliveries that fail, so report the outage
        logger.error(f"Failed to queue {event.table} change event: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Notification queue unavailable",
        ) from e
    return ChangeEventAccepted(queued=True)
