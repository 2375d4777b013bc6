"""
Price alerts API: subscriptions, price reports, and the check entry point for an external scheduler.
"""
import logging
from typing import Any

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from mandi_notify.api.deps import current_user_id, get_dispatcher
from mandi_notify.core.errors import MandiNotifyError, error_to_http
from mandi_notify.db.session import get_db
from mandi_notify.services import price_alerts
from mandi_notify.services.push import Dispatcher

router = APIRouter()
logger = logging.getLogger(__name__)


class CreateAlertBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    commodity: str
    condition: str = Field(..., pattern="^(above|below|change)$")
    threshold: float
    location: str | None = None
    one_time: bool = Field(False, alias="oneTime")


class RecordPriceBody(BaseModel):
    commodity: str
    price: float
    location: str | None = None


@router.post("/alerts")
def create_alert(
    body: CreateAlertBody,
    db: Session = Depends(get_db),
    user_id: str = Depends(current_user_id),
) -> dict[str, Any]:
    try:
        row = price_alerts.create_alert(
            db, user_id, body.commodity, body.condition, body.threshold, body.location, body.one_time
        )
    except MandiNotifyError as e:
        raise error_to_http(e)
    return price_alerts.alert_to_dict(row)


@router.get("/alerts")
def list_alerts(
    db: Session = Depends(get_db),
    user_id: str = Depends(current_user_id),
    active_only: bool = Query(False),
) -> dict[str, Any]:
    rows = price_alerts.list_alerts(db, user_id, active_only=active_only)
    return {"alerts": [price_alerts.alert_to_dict(r) for r in rows]}


@router.post("/alerts/{alert_id}/deactivate")
def deactivate_alert(
    alert_id: int,
    db: Session = Depends(get_db),
    user_id: str = Depends(current_user_id),
) -> dict[str, Any]:
    try:
        row = price_alerts.deactivate_alert(db, alert_id, user_id)
    except MandiNotifyError as e:
        raise error_to_http(e)
    return price_alerts.alert_to_dict(row)


@router.post("/alerts/check")
def check_price_alerts(db: Session = Depends(get_db), dispatcher: Dispatcher = Depends(get_dispatcher)):
    """
    Evaluate all active alerts now (same work as the scheduled job).
    200 {success, triggeredCount} on completion; 500 {error} if the run itself failed.
    """
    try:
        result = price_alerts.evaluate_price_alerts(db, dispatcher)
    except Exception as e:
        logger.exception("Price alerts check failed: %s", e)
        db.rollback()
        return JSONResponse(status_code=500, content={"success": False, "error": str(e)})
    return {
        "success": True,
        "triggeredCount": result["triggered_count"],
        "checkedCount": result["checked_count"],
    }


@router.post("/prices")
def record_price(body: RecordPriceBody, db: Session = Depends(get_db)) -> dict[str, Any]:
    try:
        row = price_alerts.record_price(db, body.commodity, body.price, body.location)
    except MandiNotifyError as e:
        raise error_to_http(e)
    return {
        "id": row.id,
        "commodity": row.commodity,
        "location": row.location,
        "price": row.price,
        "recordedAt": row.recorded_at.isoformat() if row.recorded_at else None,
    }
