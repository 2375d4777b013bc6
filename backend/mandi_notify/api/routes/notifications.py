"""
Notifications API: send (single and bulk) plus the user's persisted history.

User identified by X-User-Id header or ?user_id= for history endpoints.
Supports: send, send-bulk, list (unread/type filters), stats, export, mark one read, mark all read,
delete one, delete all.
"""
import logging
from typing import Any

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from mandi_notify.api.deps import current_user_id, get_dispatcher
from mandi_notify.core.constants import NOTIFICATION_QUERY_DEFAULT_LIMIT, NOTIFICATION_QUERY_MAX_LIMIT
from mandi_notify.core.errors import MandiNotifyError, error_to_http
from mandi_notify.db.session import get_db
from mandi_notify.services import history
from mandi_notify.services.notify import send_bulk_notifications, send_notification
from mandi_notify.services.push import Dispatcher

router = APIRouter()
logger = logging.getLogger(__name__)


# --- Send ---


class SendNotificationRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(..., alias="userId")
    title: str
    body: str
    data: dict[str, Any] | None = None
    type: str | None = None


class SendBulkNotificationsRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_ids: list[str] = Field(..., alias="userIds")
    title: str
    body: str
    data: dict[str, Any] | None = None
    type: str | None = None


@router.post("/notifications/send")
def send_one(
    body: SendNotificationRequest,
    db: Session = Depends(get_db),
    dispatcher: Dispatcher = Depends(get_dispatcher),
) -> dict[str, Any]:
    """
    Send a push notification to one user (subject to their preferences).
    Returns {success, reason?, messageId?}; 'Blocked by user preferences' and 'Invalid token removed' are not errors.
    """
    try:
        result = send_notification(db, dispatcher, body.user_id, body.title, body.body, body.data, body.type)
    except MandiNotifyError as e:
        raise error_to_http(e)
    return result.to_dict()


@router.post("/notifications/send-bulk")
def send_bulk(
    body: SendBulkNotificationsRequest,
    db: Session = Depends(get_db),
    dispatcher: Dispatcher = Depends(get_dispatcher),
) -> dict[str, Any]:
    """Send one notification to up to 1000 users. Returns {success, successCount, failureCount, responses}."""
    try:
        return send_bulk_notifications(db, dispatcher, body.user_ids, body.title, body.body, body.data, body.type)
    except MandiNotifyError as e:
        raise error_to_http(e)


# --- History ---


@router.get("/notifications")
def list_notifications(
    db: Session = Depends(get_db),
    user_id: str = Depends(current_user_id),
    limit: int = Query(NOTIFICATION_QUERY_DEFAULT_LIMIT, ge=1, le=NOTIFICATION_QUERY_MAX_LIMIT),
    unread_only: bool = Query(False),
    type: str | None = Query(None),
) -> dict[str, Any]:
    """
    List notifications for the user, newest first. Expired records are hidden.
    Use unread_only=true for badge counts or a filtered view.
    """
    rows = history.query_notifications(db, user_id, unread_only=unread_only, notification_type=type, limit=limit)
    return {
        "notifications": [history.serialize(r) for r in rows],
        "unreadCount": history.unread_count(db, user_id),
    }


@router.get("/notifications/stats")
def notification_stats(db: Session = Depends(get_db), user_id: str = Depends(current_user_id)) -> dict[str, Any]:
    return history.notification_stats(db, user_id)


@router.get("/notifications/export")
def export_notifications(db: Session = Depends(get_db), user_id: str = Depends(current_user_id)) -> dict[str, Any]:
    """Everything stored about the user's notifications (data-export request)."""
    try:
        return history.export_user_notification_data(db, user_id)
    except MandiNotifyError as e:
        raise error_to_http(e)


@router.patch("/notifications/{notification_id}/read")
def mark_notification_read(
    notification_id: int,
    db: Session = Depends(get_db),
    user_id: str = Depends(current_user_id),
) -> dict[str, Any]:
    """Mark a single notification as read (persisted)."""
    try:
        row = history.mark_read(db, notification_id, user_id)
    except MandiNotifyError as e:
        raise error_to_http(e)
    return {"ok": True, "id": row.id, "readAt": row.read_at.isoformat() if row.read_at else None}


@router.post("/notifications/mark-all-read")
def mark_all_read(db: Session = Depends(get_db), user_id: str = Depends(current_user_id)) -> dict[str, Any]:
    """Mark all notifications for the user as read (e.g. 'Clear all' in UI)."""
    return {"ok": True, "userId": user_id, "markedCount": history.mark_all_read(db, user_id)}


@router.delete("/notifications/{notification_id}")
def delete_notification(
    notification_id: int,
    db: Session = Depends(get_db),
    user_id: str = Depends(current_user_id),
) -> dict[str, Any]:
    try:
        history.delete_notification(db, notification_id, user_id)
    except MandiNotifyError as e:
        raise error_to_http(e)
    return {"ok": True, "id": notification_id}


@router.delete("/notifications")
def delete_all_notifications(db: Session = Depends(get_db), user_id: str = Depends(current_user_id)) -> dict[str, Any]:
    return {"ok": True, "userId": user_id, "deletedCount": history.delete_all_notifications(db, user_id)}
