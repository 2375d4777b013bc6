"""
Notification preferences: the opt-out filter and the operations that change a user's stored flags.

Model is opt-out: no stored preferences, a missing flag, or an unknown notification type all mean "send".
Only an explicit False blocks delivery.
"""
import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from mandi_notify.core.errors import NotFoundError, ValidationError
from mandi_notify.models.user import User
from mandi_notify.services.notification_types import PREFERENCE_FIELDS, normalize_type

logger = logging.getLogger(__name__)


class ChannelPreference(BaseModel):
    model_config = ConfigDict(extra="ignore")

    push: bool | None = None
    email: bool | None = None
    sms: bool | None = None


class NotificationPreference(BaseModel):
    """
    Stored per user. Each flag is True, False or unset (None); unset behaves like True.
    Stored snake_case; the API reads and writes the camelCase aliases (priceAlerts, ...).
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    price_alerts: bool | None = Field(None, alias="priceAlerts")
    deal_updates: bool | None = Field(None, alias="dealUpdates")
    new_opportunities: bool | None = Field(None, alias="newOpportunities")
    system_updates: bool | None = Field(None, alias="systemUpdates")
    marketing_messages: bool | None = Field(None, alias="marketingMessages")
    channels: ChannelPreference = ChannelPreference()

    @classmethod
    def from_stored(cls, raw: dict[str, Any] | None) -> "NotificationPreference | None":
        if raw is None:
            return None
        return cls.model_validate(raw)

    def normalized(self) -> "NotificationPreference":
        """Every flag resolved to a concrete bool (unset -> True), as written back on update."""
        return NotificationPreference(
            price_alerts=self.price_alerts is not False,
            deal_updates=self.deal_updates is not False,
            new_opportunities=self.new_opportunities is not False,
            system_updates=self.system_updates is not False,
            marketing_messages=self.marketing_messages is not False,
            channels=ChannelPreference(
                push=self.channels.push is not False,
                email=self.channels.email is not False,
                sms=self.channels.sms is not False,
            ),
        )

    def all_disabled(self) -> bool:
        topics = [getattr(self, f) for f in PREFERENCE_FIELDS.values()]
        channels = [self.channels.push, self.channels.email, self.channels.sms]
        return all(v is False for v in topics + channels)


def all_disabled_preferences() -> NotificationPreference:
    return NotificationPreference(
        price_alerts=False,
        deal_updates=False,
        new_opportunities=False,
        system_updates=False,
        marketing_messages=False,
        channels=ChannelPreference(push=False, email=False, sms=False),
    )


def should_send(notification_type: str | None, prefs: NotificationPreference | None) -> bool:
    """True unless prefs explicitly set the field mapped to this type to False."""
    if prefs is None:
        return True
    field = PREFERENCE_FIELDS.get(normalize_type(notification_type))
    if field is None:
        return True
    return getattr(prefs, field) is not False


# --- Stored preferences ---


def _get_user(db: Session, user_id: str) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError(f"User not found: {user_id}")
    return user


def get_preferences(db: Session, user_id: str) -> NotificationPreference | None:
    return NotificationPreference.from_stored(_get_user(db, user_id).notification_preferences)


def update_preferences(db: Session, user_id: str, prefs: NotificationPreference) -> NotificationPreference:
    """
    Overwrite the user's preferences (flags normalized to booleans).
    Disabling every topic and channel also drops the device token; enabling anything clears the disabled flag.
    """
    user = _get_user(db, user_id)
    validated = prefs.normalized()
    user.notification_preferences = validated.model_dump()
    if validated.all_disabled():
        user.fcm_token = None
        user.notifications_disabled = True
        logger.info("All notifications disabled for user %s; device token removed", user_id)
    else:
        user.notifications_disabled = False
    db.commit()
    return validated


def opt_out_of_type(db: Session, user_id: str, notification_type: str) -> NotificationPreference:
    field = PREFERENCE_FIELDS.get(normalize_type(notification_type))
    if field is None:
        raise ValidationError(f"Unknown notification type: {notification_type}")
    current = get_preferences(db, user_id) or NotificationPreference()
    updated = current.model_copy(update={field: False})
    result = update_preferences(db, user_id, updated)
    logger.info("User %s opted out from %s notifications", user_id, notification_type)
    return result


def opt_out_of_all(db: Session, user_id: str) -> NotificationPreference:
    return update_preferences(db, user_id, all_disabled_preferences())


def has_opted_out(db: Session, user_id: str, notification_type: str) -> bool:
    prefs = get_preferences(db, user_id)
    if prefs is None:
        return False
    field = PREFERENCE_FIELDS.get(normalize_type(notification_type))
    if field is None:
        return False
    return getattr(prefs, field) is False


def reset_preferences(db: Session, user_id: str) -> None:
    """Clear stored preferences back to 'never set'. Caller commits."""
    user = _get_user(db, user_id)
    user.notification_preferences = None
    user.notifications_disabled = False
