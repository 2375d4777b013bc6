"""
Notification history: what the engine decided to send, per user.

A record is written for every notification that passed the preference filter, whether or not the push
itself went out (history records intent, not transport). Bulk mutations (mark all read, delete all,
purge) are single statements committed together, so callers see all-or-nothing.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Iterable

from sqlalchemy import func
from sqlalchemy.orm import Session

from mandi_notify.core.constants import NOTIFICATION_QUERY_DEFAULT_LIMIT, NOTIFICATION_QUERY_MAX_LIMIT
from mandi_notify.core.errors import NotFoundError
from mandi_notify.models.user_notification import UserNotification
from mandi_notify.services import preferences as preference_service
from mandi_notify.services.notification_types import normalize_type, notification_expiry
from mandi_notify.services.tokens import evict_token

logger = logging.getLogger(__name__)


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def serialize(row: UserNotification) -> dict[str, Any]:
    return {
        "id": row.id,
        "userId": row.user_id,
        "type": row.type,
        "title": row.title,
        "message": row.message,
        "data": row.data or {},
        "read": bool(row.read),
        "readAt": _iso(row.read_at),
        "createdAt": _iso(row.created_at),
        "expiresAt": _iso(row.expires_at),
    }


# --- Write ---


def _new_row(
    user_id: str,
    notification_type: str | None,
    title: str,
    message: str,
    data: dict[str, Any] | None,
    now: datetime,
) -> UserNotification:
    ntype = normalize_type(notification_type)
    return UserNotification(
        user_id=user_id,
        type=ntype,
        title=title,
        message=message,
        data=dict(data or {}),
        read=False,
        created_at=now,
        expires_at=notification_expiry(ntype, now),
    )


def record_notification(
    db: Session,
    user_id: str,
    notification_type: str | None,
    title: str,
    message: str,
    data: dict[str, Any] | None = None,
) -> UserNotification:
    now = datetime.now(timezone.utc)
    row = _new_row(user_id, notification_type, title, message, data, now)
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def record_notifications(
    db: Session,
    user_ids: Iterable[str],
    notification_type: str | None,
    title: str,
    message: str,
    data: dict[str, Any] | None = None,
) -> int:
    """Same notification for many users, written in one commit."""
    now = datetime.now(timezone.utc)
    rows = [_new_row(uid, notification_type, title, message, data, now) for uid in user_ids]
    if not rows:
        return 0
    db.add_all(rows)
    db.commit()
    return len(rows)


# --- Read ---


def query_notifications(
    db: Session,
    user_id: str,
    *,
    unread_only: bool = False,
    notification_type: str | None = None,
    limit: int = NOTIFICATION_QUERY_DEFAULT_LIMIT,
    include_expired: bool = False,
) -> list[UserNotification]:
    """Newest first. Expired records (not yet purged) are hidden unless include_expired."""
    limit = max(1, min(limit, NOTIFICATION_QUERY_MAX_LIMIT))
    q = db.query(UserNotification).filter(UserNotification.user_id == user_id)
    if unread_only:
        q = q.filter(UserNotification.read.is_(False))
    if notification_type:
        q = q.filter(UserNotification.type == notification_type)
    if not include_expired:
        q = q.filter(UserNotification.expires_at > datetime.now(timezone.utc))
    return q.order_by(UserNotification.created_at.desc(), UserNotification.id.desc()).limit(limit).all()


def unread_count(db: Session, user_id: str) -> int:
    return (
        db.query(UserNotification)
        .filter(UserNotification.user_id == user_id, UserNotification.read.is_(False))
        .count()
    )


def notification_stats(db: Session, user_id: str) -> dict[str, Any]:
    """{total, unread, byType, lastReceived} over all stored records for the user."""
    base = db.query(UserNotification).filter(UserNotification.user_id == user_id)
    total = base.count()
    by_type_rows = (
        db.query(UserNotification.type, func.count(UserNotification.id))
        .filter(UserNotification.user_id == user_id)
        .group_by(UserNotification.type)
        .all()
    )
    last_received = (
        db.query(func.max(UserNotification.created_at)).filter(UserNotification.user_id == user_id).scalar()
    )
    return {
        "total": total,
        "unread": unread_count(db, user_id),
        "byType": {ntype or "unknown": count for ntype, count in by_type_rows},
        "lastReceived": _iso(last_received),
    }


def export_user_notification_data(db: Session, user_id: str) -> dict[str, Any]:
    """Full snapshot for a data-export request: every record (expired included), preferences and stats."""
    rows = (
        db.query(UserNotification)
        .filter(UserNotification.user_id == user_id)
        .order_by(UserNotification.created_at.desc(), UserNotification.id.desc())
        .all()
    )
    prefs = preference_service.get_preferences(db, user_id)
    return {
        "userId": user_id,
        "notifications": [serialize(r) for r in rows],
        "preferences": prefs.model_dump(by_alias=True) if prefs else None,
        "stats": notification_stats(db, user_id),
        "exportedAt": datetime.now(timezone.utc).isoformat(),
    }


# --- Mutate ---


def _get_row(db: Session, notification_id: int, user_id: str | None) -> UserNotification:
    q = db.query(UserNotification).filter(UserNotification.id == notification_id)
    if user_id is not None:
        q = q.filter(UserNotification.user_id == user_id)
    row = q.first()
    if row is None:
        raise NotFoundError(f"Notification not found: {notification_id}")
    return row


def mark_read(db: Session, notification_id: int, user_id: str | None = None) -> UserNotification:
    """Mark one record read. Already-read records keep their original read_at."""
    row = _get_row(db, notification_id, user_id)
    if not row.read:
        row.read = True
        row.read_at = datetime.now(timezone.utc)
        db.commit()
    return row


def mark_all_read(db: Session, user_id: str) -> int:
    now = datetime.now(timezone.utc)
    try:
        updated = (
            db.query(UserNotification)
            .filter(UserNotification.user_id == user_id, UserNotification.read.is_(False))
            .update({UserNotification.read: True, UserNotification.read_at: now}, synchronize_session=False)
        )
        db.commit()
    except Exception:
        db.rollback()
        raise
    return updated


def delete_notification(db: Session, notification_id: int, user_id: str | None = None) -> None:
    row = _get_row(db, notification_id, user_id)
    db.delete(row)
    db.commit()


def delete_all_notifications(db: Session, user_id: str) -> int:
    try:
        deleted = (
            db.query(UserNotification)
            .filter(UserNotification.user_id == user_id)
            .delete(synchronize_session=False)
        )
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("Deleted %s notifications for user %s", deleted, user_id)
    return deleted


def purge_expired(db: Session, now: datetime | None = None) -> int:
    now = now or datetime.now(timezone.utc)
    try:
        deleted = (
            db.query(UserNotification)
            .filter(UserNotification.expires_at < now)
            .delete(synchronize_session=False)
        )
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("Cleaned up %s expired notifications", deleted)
    return deleted


def delete_all_user_notification_data(db: Session, user_id: str) -> int:
    """Privacy delete: history, device token and stored preferences. The user record itself stays."""
    preference_service.reset_preferences(db, user_id)
    deleted = delete_all_notifications(db, user_id)
    evict_token(db, user_id)
    logger.info("All notification data deleted for user %s", user_id)
    return deleted
