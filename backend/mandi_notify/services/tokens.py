"""
Device token lifecycle: register a user's push token, evict it when the gateway says it is dead.
"""
import logging
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from mandi_notify.models.user import User

logger = logging.getLogger(__name__)


def register_token(db: Session, user_id: str, device_token: str, platform: str = "android") -> bool:
    """
    Create or overwrite the user's push token. Creates the user record on first registration.
    Returns True if the stored token changed.
    """
    token = device_token.strip()
    user = db.get(User, user_id)
    if user is None:
        user = User(id=user_id)
        db.add(user)
    changed = user.fcm_token != token
    user.fcm_token = token
    user.platform = platform
    user.token_updated_at = datetime.now(timezone.utc)
    db.commit()
    if changed:
        logger.info("Registered push token for user=%s platform=%s", user_id, platform)
    return changed


def evict_token(db: Session, user_id: str) -> bool:
    """
    Remove the user's push token after the gateway reported it permanently invalid.
    Idempotent: a missing user or an already-empty token is a no-op. Returns True if a token was removed.
    """
    user = db.get(User, user_id)
    if user is None or not user.fcm_token:
        return False
    user.fcm_token = None
    user.token_updated_at = datetime.now(timezone.utc)
    db.commit()
    logger.info("Removed invalid push token for user %s", user_id)
    return True
