"""
Deals: create and update deal rows, then hand the before/after snapshots to the deal event handlers.
"""
from typing import Any

from sqlalchemy.orm import Session

from mandi_notify.core.errors import NotFoundError, ValidationError
from mandi_notify.models.deal import Deal
from mandi_notify.services.deal_events import on_deal_created, on_deal_updated
from mandi_notify.services.push import Dispatcher

_UPDATABLE_FIELDS = ("status", "agreed_price", "quantity", "unit")


def deal_to_dict(row: Deal) -> dict[str, Any]:
    return {
        "id": row.id,
        **row.to_snapshot(),
        "createdAt": row.created_at.isoformat() if row.created_at else None,
        "updatedAt": row.updated_at.isoformat() if row.updated_at else None,
    }


def create_deal(
    db: Session,
    dispatcher: Dispatcher,
    buyer_id: str,
    seller_id: str,
    commodity: str,
    agreed_price: float,
    quantity: float | None = None,
    unit: str | None = None,
) -> Deal:
    if not buyer_id or not seller_id:
        raise ValidationError("Both buyerId and sellerId are required.")
    if buyer_id == seller_id:
        raise ValidationError("Buyer and seller must be different users.")
    if not (commodity or "").strip():
        raise ValidationError("commodity is required.")
    if agreed_price is None or agreed_price <= 0:
        raise ValidationError("agreedPrice must be positive.")
    row = Deal(
        buyer_id=buyer_id,
        seller_id=seller_id,
        commodity=commodity.strip(),
        agreed_price=agreed_price,
        quantity=quantity,
        unit=unit,
        status="confirmed",
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    on_deal_created(db, dispatcher, row.id, row.to_snapshot())
    return row


def update_deal(db: Session, dispatcher: Dispatcher, deal_id: int, changes: dict[str, Any]) -> Deal:
    """Apply changes (status, agreed_price, quantity, unit) and react to the write."""
    row = db.get(Deal, deal_id)
    if row is None:
        raise NotFoundError(f"Deal not found: {deal_id}")
    unknown = set(changes) - set(_UPDATABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Cannot update fields: {', '.join(sorted(unknown))}")
    if "status" in changes:
        status = changes["status"]
        if not isinstance(status, str) or not status.strip():
            raise ValidationError("status must be a non-empty string.")
        changes = {**changes, "status": status.strip()}
    if "agreed_price" in changes:
        price = changes["agreed_price"]
        if price is None or price <= 0:
            raise ValidationError("agreedPrice must be positive.")
    before = row.to_snapshot()
    for key, value in changes.items():
        setattr(row, key, value)
    db.commit()
    db.refresh(row)
    on_deal_updated(db, dispatcher, row.id, before, row.to_snapshot())
    return row
