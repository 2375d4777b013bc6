"""Runs daily: delete notification history past its expires_at."""
import logging

from mandi_notify.db.session import SessionLocal
from mandi_notify.services.history import purge_expired

logger = logging.getLogger(__name__)


def run_notification_cleanup_job() -> None:
    db = SessionLocal()
    try:
        purge_expired(db)
    except Exception as e:
        logger.exception("Notification cleanup job failed: %s", e)
    finally:
        db.close()
