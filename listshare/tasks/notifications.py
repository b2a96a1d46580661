"""Celery tasks for change-event push notifications."""

import logging

from sqlalchemy.orm import Session

from listshare.celery_app import app as celery_app
from listshare.database import SessionLocal
from listshare.services.notification_service import get_notification_service

logger = logging.getLogger(__name__)


@celery_app.task
def dispatch_change_event(payload: dict) -> dict:
    """Deliver push notifications for one store change event.

    Args:
        payload: {"type", "table", "record", "old_record", "schema"}

    Returns:
        dict with the number of push messages sent
    """
    db: Session = SessionLocal()
    try:
        sent = get_notification_service(db).handle_change_event(payload)
        return {"sent": sent}
    finally:
        db.close()


def enqueue_change_event(table: str, record: dict) -> None:
    """Queue an INSERT change event for asynchronous delivery.

    Called after the inserting transaction has committed. A broker outage
    must not fail the insert, so errors are only logged.
    """
    payload = {
        "type": "INSERT",
        "table": table,
        "record": record,
        "old_record": None,
        "schema": "public",
    }
    try:
        dispatch_change_event.delay(payload)
    except Exception as e:
        logger.error(f"Failed to enqueue {table} change event: {e}")
