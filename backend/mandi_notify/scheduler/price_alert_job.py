"""Runs every PRICE_ALERT_INTERVAL_SECONDS: evaluate active price alerts and push the ones that fire."""
import logging

from mandi_notify.db.session import SessionLocal
from mandi_notify.services.price_alerts import evaluate_price_alerts
from mandi_notify.services.push import Dispatcher

logger = logging.getLogger(__name__)


def run_price_alert_job(dispatcher: Dispatcher) -> dict[str, int] | None:
    db = SessionLocal()
    try:
        return evaluate_price_alerts(db, dispatcher)
    except Exception as e:
        logger.exception("Price alert job failed: %s", e)
        db.rollback()
        return None
    finally:
        db.close()
