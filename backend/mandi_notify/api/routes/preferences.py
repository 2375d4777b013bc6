"""Notification preferences API: read, overwrite, opt out, privacy delete."""
import logging
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from mandi_notify.core.errors import MandiNotifyError, error_to_http
from mandi_notify.db.session import get_db
from mandi_notify.services import history, preferences
from mandi_notify.services.preferences import NotificationPreference

router = APIRouter()
logger = logging.getLogger(__name__)


class OptOutBody(BaseModel):
    type: str


@router.get("/users/{user_id}/notification-preferences")
def get_preferences(user_id: str, db: Session = Depends(get_db)) -> dict[str, Any]:
    """Stored preferences, or null when the user never set any (everything is sent)."""
    try:
        prefs = preferences.get_preferences(db, user_id)
    except MandiNotifyError as e:
        raise error_to_http(e)
    return {"userId": user_id, "preferences": prefs.model_dump(by_alias=True) if prefs else None}


@router.put("/users/{user_id}/notification-preferences")
def put_preferences(user_id: str, body: NotificationPreference, db: Session = Depends(get_db)) -> dict[str, Any]:
    try:
        prefs = preferences.update_preferences(db, user_id, body)
    except MandiNotifyError as e:
        raise error_to_http(e)
    return {"userId": user_id, "preferences": prefs.model_dump(by_alias=True)}


@router.post("/users/{user_id}/notification-preferences/opt-out")
def opt_out(user_id: str, body: OptOutBody, db: Session = Depends(get_db)) -> dict[str, Any]:
    try:
        prefs = preferences.opt_out_of_type(db, user_id, body.type)
    except MandiNotifyError as e:
        raise error_to_http(e)
    return {"userId": user_id, "preferences": prefs.model_dump(by_alias=True)}


@router.post("/users/{user_id}/notification-preferences/opt-out-all")
def opt_out_all(user_id: str, db: Session = Depends(get_db)) -> dict[str, Any]:
    try:
        prefs = preferences.opt_out_of_all(db, user_id)
    except MandiNotifyError as e:
        raise error_to_http(e)
    return {"userId": user_id, "preferences": prefs.model_dump(by_alias=True)}


@router.get("/users/{user_id}/notification-preferences/opted-out/{notification_type}")
def opted_out(user_id: str, notification_type: str, db: Session = Depends(get_db)) -> dict[str, Any]:
    try:
        result = preferences.has_opted_out(db, user_id, notification_type)
    except MandiNotifyError as e:
        raise error_to_http(e)
    return {"userId": user_id, "type": notification_type, "optedOut": result}


@router.delete("/users/{user_id}/notification-data")
def delete_notification_data(user_id: str, db: Session = Depends(get_db)) -> dict[str, Any]:
    """Privacy delete: history, device token and preferences."""
    try:
        deleted = history.delete_all_user_notification_data(db, user_id)
    except MandiNotifyError as e:
        raise error_to_http(e)
    return {"ok": True, "userId": user_id, "deletedCount": deleted}
