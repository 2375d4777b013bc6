"""
Deal events: turn a deal write into deal_update notifications for buyer and seller.

Each counterparty is sent independently; a failure for one is logged and never stops the other.
The write itself is history, so nothing here is retried.
"""
import logging
from typing import Any

from sqlalchemy.orm import Session

from mandi_notify.services.notification_types import NotificationType
from mandi_notify.services.notify import SendResult, send_notification
from mandi_notify.services.push import Dispatcher

logger = logging.getLogger(__name__)

DEAL_STATUS_MESSAGES = {
    "paid": "Payment confirmed",
    "delivered": "Order delivered",
    "completed": "Deal completed successfully",
    "disputed": "Deal disputed - please review",
    "cancelled": "Deal cancelled",
}


def _format_price(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def status_message(status: str | None) -> str:
    return DEAL_STATUS_MESSAGES.get(status or "", f"Deal status updated to {status}")


def _counterparties(deal: dict[str, Any]) -> list[str]:
    return [uid for uid in (deal.get("buyerId"), deal.get("sellerId")) if uid]


def _send_to_each(
    db: Session,
    dispatcher: Dispatcher,
    deal_id: str,
    user_ids: list[str],
    title: str,
    body: str,
    data: dict[str, Any],
) -> dict[str, SendResult | None]:
    """Send to every counterparty; None marks a user whose send raised."""
    outcomes: dict[str, SendResult | None] = {}
    for user_id in user_ids:
        try:
            outcomes[user_id] = send_notification(
                db,
                dispatcher,
                user_id,
                title,
                body,
                data=data,
                notification_type=NotificationType.DEAL_UPDATE.value,
            )
        except Exception as e:
            db.rollback()
            logger.error("Failed to send deal %s notification to %s: %s", deal_id, user_id, e)
            outcomes[user_id] = None
    return outcomes


def on_deal_created(
    db: Session,
    dispatcher: Dispatcher,
    deal_id: str | int,
    deal: dict[str, Any] | None,
) -> dict[str, SendResult | None]:
    """Notify buyer and seller that the deal is confirmed."""
    if not deal:
        return {}
    try:
        deal_id = str(deal_id)
        body = (
            f"Your deal for {deal.get('commodity')} at ₹{_format_price(deal.get('agreedPrice'))} "
            "has been confirmed"
        )
        return _send_to_each(
            db,
            dispatcher,
            deal_id,
            _counterparties(deal),
            "Deal Confirmed",
            body,
            {"dealId": deal_id, "action": "confirmed"},
        )
    except Exception as e:
        logger.exception("Deal creation notification failed for %s: %s", deal_id, e)
        return {}


def on_deal_updated(
    db: Session,
    dispatcher: Dispatcher,
    deal_id: str | int,
    before: dict[str, Any] | None,
    after: dict[str, Any] | None,
) -> dict[str, SendResult | None]:
    """Notify both parties when the status changed. Updates that keep the status send nothing."""
    if not before or not after:
        return {}
    if before.get("status") == after.get("status"):
        return {}
    try:
        deal_id = str(deal_id)
        status = after.get("status")
        body = f"{after.get('commodity')} deal: {status_message(status)}"
        return _send_to_each(
            db,
            dispatcher,
            deal_id,
            _counterparties(after),
            "Deal Update",
            body,
            {"dealId": deal_id, "status": status, "action": "status_updated"},
        )
    except Exception as e:
        logger.exception("Deal update notification failed for %s: %s", deal_id, e)
        return {}
