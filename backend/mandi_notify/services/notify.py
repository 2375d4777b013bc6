"""
Send notifications: the one front door for human- and system-triggered pushes.

Order for a single send: validate -> load user -> preference filter -> push -> history.
Validation failures and preference blocks write nothing. Once the filter passes, a history record is
written whatever the push outcome (no token, dead token, gateway failure).
"""
import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy.orm import Session

from mandi_notify.core.constants import (
    MAX_BODY_LENGTH,
    MAX_BULK_RECIPIENTS,
    MAX_TITLE_LENGTH,
    USER_LOOKUP_CHUNK_SIZE,
)
from mandi_notify.core.errors import DeliveryError, InvalidDestinationError, NotFoundError, ValidationError
from mandi_notify.models.user import User
from mandi_notify.services import history
from mandi_notify.services.notification_types import normalize_type
from mandi_notify.services.preferences import NotificationPreference, should_send
from mandi_notify.services.push import Dispatcher
from mandi_notify.services.tokens import evict_token

logger = logging.getLogger(__name__)

REASON_BLOCKED = "Blocked by user preferences"
REASON_NO_TOKEN = "No FCM token"
REASON_INVALID_TOKEN = "Invalid token removed"
REASON_NO_VALID_TOKENS = "No valid tokens found"


@dataclass
class SendResult:
    success: bool
    reason: str | None = None
    message_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"success": self.success}
        if self.reason:
            out["reason"] = self.reason
        if self.message_id:
            out["messageId"] = self.message_id
        return out


def _validate_text(name: str, value: Any, max_length: int) -> str:
    if not value or not isinstance(value, str) or not value.strip():
        raise ValidationError(f"Invalid input: '{name}' must be a non-empty string")
    if len(value) > max_length:
        raise ValidationError(f"Invalid input: '{name}' exceeds {max_length} characters")
    return value


def _validate_data(data: Any) -> dict[str, Any]:
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Invalid input: 'data' must be an object")
    return data


def _user_preferences(user: User) -> NotificationPreference | None:
    return NotificationPreference.from_stored(user.notification_preferences)


def send_notification(
    db: Session,
    dispatcher: Dispatcher,
    user_id: str,
    title: str,
    body: str,
    data: dict[str, Any] | None = None,
    notification_type: str | None = None,
) -> SendResult:
    """
    Send one notification to one user.
    Returns SendResult for delivered, blocked, tokenless and dead-token outcomes.
    Raises ValidationError, NotFoundError, or DeliveryError for gateway failures (after recording history).
    """
    if not user_id or not isinstance(user_id, str):
        raise ValidationError("Invalid input: 'userId' must be a non-empty string")
    _validate_text("title", title, MAX_TITLE_LENGTH)
    _validate_text("body", body, MAX_BODY_LENGTH)
    data = _validate_data(data)
    ntype = normalize_type(notification_type)

    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError(f"User not found: {user_id}")

    if not should_send(ntype, _user_preferences(user)):
        logger.info("Notification blocked by user preferences: %s, type: %s", user_id, ntype)
        return SendResult(success=False, reason=REASON_BLOCKED)

    token = user.fcm_token
    if not token:
        logger.warning("No FCM token found for user: %s", user_id)
        history.record_notification(db, user_id, ntype, title, body, data)
        return SendResult(success=False, reason=REASON_NO_TOKEN)

    try:
        message_id = dispatcher.send(token, title, body, data, ntype, user_id=user_id)
    except InvalidDestinationError:
        evict_token(db, user_id)
        history.record_notification(db, user_id, ntype, title, body, data)
        return SendResult(success=False, reason=REASON_INVALID_TOKEN)
    except DeliveryError as e:
        logger.error("Failed to send notification to %s: %s", user_id, e)
        history.record_notification(db, user_id, ntype, title, body, data)
        raise

    history.record_notification(db, user_id, ntype, title, body, data)
    logger.info("Notification sent successfully: %s (user=%s type=%s)", message_id, user_id, ntype)
    return SendResult(success=True, message_id=message_id)


def _load_users(db: Session, user_ids: list[str]) -> list[User]:
    """Users for the given ids, looked up USER_LOOKUP_CHUNK_SIZE at a time. Missing ids are skipped."""
    found: dict[str, User] = {}
    for i in range(0, len(user_ids), USER_LOOKUP_CHUNK_SIZE):
        chunk = user_ids[i : i + USER_LOOKUP_CHUNK_SIZE]
        for user in db.query(User).filter(User.id.in_(chunk)).all():
            found[user.id] = user
    missing = len(user_ids) - len(found)
    if missing:
        logger.info("Bulk send: %s of %s users not found; skipping them", missing, len(user_ids))
    return [found[uid] for uid in user_ids if uid in found]


def send_bulk_notifications(
    db: Session,
    dispatcher: Dispatcher,
    user_ids: list[str],
    title: str,
    body: str,
    data: dict[str, Any] | None = None,
    notification_type: str | None = None,
) -> dict[str, Any]:
    """
    Send the same notification to up to MAX_BULK_RECIPIENTS users in one multicast.
    Users without a token, blocked by preferences, or unknown are skipped. Dead tokens reported by the
    gateway are evicted. History is recorded for every user the multicast was addressed to.
    """
    if not isinstance(user_ids, list) or not user_ids:
        raise ValidationError("Invalid input: 'userIds' must be a non-empty array")
    if len(user_ids) > MAX_BULK_RECIPIENTS:
        raise ValidationError(f"Too many recipients: maximum {MAX_BULK_RECIPIENTS} users per batch")
    if not all(isinstance(uid, str) and uid for uid in user_ids):
        raise ValidationError("Invalid input: 'userIds' must contain non-empty strings")
    _validate_text("title", title, MAX_TITLE_LENGTH)
    _validate_text("body", body, MAX_BODY_LENGTH)
    data = _validate_data(data)
    ntype = normalize_type(notification_type)

    unique_ids = list(dict.fromkeys(user_ids))
    recipients: list[tuple[str, str]] = []
    for user in _load_users(db, unique_ids):
        if user.fcm_token and should_send(ntype, _user_preferences(user)):
            recipients.append((user.id, user.fcm_token))

    if not recipients:
        return {
            "success": False,
            "reason": REASON_NO_VALID_TOKENS,
            "successCount": 0,
            "failureCount": 0,
            "responses": [],
        }

    result = dispatcher.send_multicast([token for _, token in recipients], title, body, data, ntype)
    logger.info(
        "Bulk notification sent: %s/%s successful (type=%s)",
        result.success_count,
        len(recipients),
        ntype,
    )

    for (user_id, _), response in zip(recipients, result.responses):
        if response.invalid_destination:
            evict_token(db, user_id)

    history.record_notifications(db, [uid for uid, _ in recipients], ntype, title, body, data)

    return {
        "success": True,
        "successCount": result.success_count,
        "failureCount": result.failure_count,
        "responses": [r.to_dict() for r in result.responses],
    }
