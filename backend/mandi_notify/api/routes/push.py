"""Push notification registration: a user's device token."""
import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from mandi_notify.db.session import get_db
from mandi_notify.services.tokens import register_token

router = APIRouter()
logger = logging.getLogger(__name__)


class RegisterPushBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(..., alias="userId", min_length=1, max_length=128)
    device_token: str = Field(..., alias="deviceToken", min_length=1, max_length=512, description="FCM registration token")
    platform: str = Field(default="android", pattern="^(android|ios|web)$")


@router.post("/push/register")
def register_push_token(body: RegisterPushBody, db: Session = Depends(get_db)):
    """
    Register the device for push notifications.
    Call this from the client after it receives its FCM token.
    Idempotent: the user's single token is overwritten with the latest one.
    """
    changed = register_token(db, body.user_id.strip(), body.device_token, body.platform)
    return {"ok": True, "message": "Token registered" if changed else "Token already registered"}
