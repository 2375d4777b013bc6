"""
Price alerts: user subscriptions on a commodity price, and the periodic evaluation that fires them.

Evaluation is one pass over active subscriptions. Each subscription is its own failure domain: an
error is logged, rolled back and the loop moves on. One-time alerts deactivate when they fire.
"""
import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.orm import Session

from mandi_notify.core.constants import PRICE_CHANGE_BAND
from mandi_notify.core.errors import NotFoundError, ValidationError
from mandi_notify.models.commodity_price import CommodityPrice
from mandi_notify.models.price_alert import PriceAlert
from mandi_notify.services.notification_types import NotificationType
from mandi_notify.services.notify import send_notification
from mandi_notify.services.push import Dispatcher

logger = logging.getLogger(__name__)

CONDITIONS = ("above", "below", "change")


def _fmt(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def alert_to_dict(row: PriceAlert) -> dict[str, Any]:
    return {
        "id": row.id,
        "userId": row.user_id,
        "commodity": row.commodity,
        "condition": row.condition,
        "threshold": row.threshold,
        "location": row.location,
        "active": bool(row.active),
        "oneTime": bool(row.one_time),
        "lastTriggeredAt": row.last_triggered_at.isoformat() if row.last_triggered_at else None,
        "createdAt": row.created_at.isoformat() if row.created_at else None,
    }


# --- Subscriptions ---


def create_alert(
    db: Session,
    user_id: str,
    commodity: str,
    condition: str,
    threshold: float,
    location: str | None = None,
    one_time: bool = False,
) -> PriceAlert:
    commodity = (commodity or "").strip()
    if not user_id:
        raise ValidationError("userId is required.")
    if not commodity:
        raise ValidationError("commodity is required.")
    if condition not in CONDITIONS:
        raise ValidationError(f"Invalid condition {condition!r}. Use one of: {', '.join(CONDITIONS)}.")
    if threshold is None or threshold <= 0:
        raise ValidationError("threshold must be positive.")
    row = PriceAlert(
        user_id=user_id,
        commodity=commodity,
        condition=condition,
        threshold=threshold,
        location=(location or "").strip() or None,
        active=True,
        one_time=one_time,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def list_alerts(db: Session, user_id: str, active_only: bool = False) -> list[PriceAlert]:
    q = db.query(PriceAlert).filter(PriceAlert.user_id == user_id)
    if active_only:
        q = q.filter(PriceAlert.active.is_(True))
    return q.order_by(PriceAlert.created_at.desc(), PriceAlert.id.desc()).all()


def deactivate_alert(db: Session, alert_id: int, user_id: str | None = None) -> PriceAlert:
    q = db.query(PriceAlert).filter(PriceAlert.id == alert_id)
    if user_id is not None:
        q = q.filter(PriceAlert.user_id == user_id)
    row = q.first()
    if row is None:
        raise NotFoundError(f"Price alert not found: {alert_id}")
    row.active = False
    db.commit()
    return row


# --- Prices ---


def record_price(db: Session, commodity: str, price: float, location: str | None = None) -> CommodityPrice:
    commodity = (commodity or "").strip()
    if not commodity:
        raise ValidationError("commodity is required.")
    if price is None or price <= 0:
        raise ValidationError("price must be positive.")
    row = CommodityPrice(
        commodity=commodity,
        location=(location or "").strip() or None,
        price=price,
        recorded_at=datetime.now(timezone.utc),
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def latest_price(db: Session, commodity: str, location: str | None = None) -> float | None:
    """Most recent recorded price for the commodity (at the location, when given). None if never recorded."""
    q = db.query(CommodityPrice).filter(CommodityPrice.commodity == commodity)
    if location:
        q = q.filter(CommodityPrice.location == location)
    row = q.order_by(CommodityPrice.recorded_at.desc(), CommodityPrice.id.desc()).first()
    return row.price if row else None


# --- Evaluation ---


def should_trigger(current_price: float, condition: str, threshold: float) -> bool:
    """
    above: price > threshold; below: price < threshold.
    change: price is more than PRICE_CHANGE_BAND (5%) of the threshold away from the threshold.
    Unknown conditions never trigger.
    """
    if condition == "above":
        return current_price > threshold
    if condition == "below":
        return current_price < threshold
    if condition == "change":
        return abs(current_price - threshold) > threshold * PRICE_CHANGE_BAND
    return False


def _fire(db: Session, dispatcher: Dispatcher, alert: PriceAlert, current_price: float) -> None:
    send_notification(
        db,
        dispatcher,
        alert.user_id,
        f"Price Alert: {alert.commodity}",
        f"Current price ₹{_fmt(current_price)} {alert.condition} your threshold of ₹{_fmt(alert.threshold)}",
        data={
            "alertId": alert.id,
            "commodity": alert.commodity,
            "currentPrice": current_price,
            "threshold": alert.threshold,
            "condition": alert.condition,
        },
        notification_type=NotificationType.PRICE_ALERT.value,
    )


def evaluate_price_alerts(db: Session, dispatcher: Dispatcher) -> dict[str, int]:
    """
    Check every active alert against the latest price. Returns {"triggered_count", "checked_count", "error_count"}.
    Per-alert errors are logged and skipped, never raised.
    """
    alerts = db.query(PriceAlert).filter(PriceAlert.active.is_(True)).order_by(PriceAlert.id.asc()).all()
    if not alerts:
        logger.debug("Price alerts: no active alerts found")
        return {"triggered_count": 0, "checked_count": 0, "error_count": 0}

    triggered = 0
    errors = 0
    for alert in alerts:
        alert_id = alert.id
        try:
            current = latest_price(db, alert.commodity, alert.location)
            if current is None:
                continue
            if not should_trigger(current, alert.condition, alert.threshold):
                continue
            _fire(db, dispatcher, alert, current)
            triggered += 1
            alert.last_triggered_at = datetime.now(timezone.utc)
            if alert.one_time:
                alert.active = False
            db.commit()
        except Exception as e:
            db.rollback()
            errors += 1
            logger.error("Failed to process price alert %s: %s", alert_id, e, exc_info=True)

    logger.info("Price alerts check completed: %s of %s alerts triggered", triggered, len(alerts))
    return {"triggered_count": triggered, "checked_count": len(alerts), "error_count": errors}
