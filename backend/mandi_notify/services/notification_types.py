"""
Notification types and the per-type tables that hang off them (preference field, Android channel, expiry).
"""
from datetime import datetime, timedelta, timezone
from enum import Enum

from mandi_notify.core.constants import DEFAULT_NOTIFICATION_EXPIRY_DAYS, NOTIFICATION_EXPIRY_DAYS


class NotificationType(str, Enum):
    PRICE_ALERT = "price_alert"
    DEAL_UPDATE = "deal_update"
    NEW_OPPORTUNITY = "new_opportunity"
    SYSTEM_UPDATE = "system_update"
    MARKETING = "marketing"
    GENERAL = "general"


DEFAULT_TYPE = NotificationType.GENERAL.value

# Type -> NotificationPreference field that gates it. Types not listed are never blocked.
PREFERENCE_FIELDS: dict[str, str] = {
    NotificationType.PRICE_ALERT.value: "price_alerts",
    NotificationType.DEAL_UPDATE.value: "deal_updates",
    NotificationType.NEW_OPPORTUNITY.value: "new_opportunities",
    NotificationType.SYSTEM_UPDATE.value: "system_updates",
    NotificationType.MARKETING.value: "marketing_messages",
}

_CHANNEL_IDS: dict[str, str] = {
    NotificationType.PRICE_ALERT.value: "price_alerts",
    NotificationType.DEAL_UPDATE.value: "deal_updates",
    NotificationType.NEW_OPPORTUNITY.value: "opportunities",
    NotificationType.SYSTEM_UPDATE.value: "system",
}

# Types the client keeps on screen until the user dismisses them
REQUIRE_INTERACTION_TYPES = frozenset({NotificationType.PRICE_ALERT.value, NotificationType.DEAL_UPDATE.value})


def normalize_type(notification_type: str | None) -> str:
    return (notification_type or "").strip() or DEFAULT_TYPE


def channel_id_for(notification_type: str | None) -> str:
    """Android notification channel for a type ('general' for anything unmapped)."""
    return _CHANNEL_IDS.get(normalize_type(notification_type), "general")


def expiry_days_for(notification_type: str | None) -> int:
    return NOTIFICATION_EXPIRY_DAYS.get(normalize_type(notification_type), DEFAULT_NOTIFICATION_EXPIRY_DAYS)


def notification_expiry(notification_type: str | None, now: datetime | None = None) -> datetime:
    """When a record of this type stops being kept: 7 days for alerts/opportunities, 90 for system, else 30."""
    now = now or datetime.now(timezone.utc)
    return now + timedelta(days=expiry_days_for(notification_type))
