from mandi_notify.services.notify import send_bulk_notifications, send_notification
from mandi_notify.services.preferences import NotificationPreference, should_send

__all__ = ["NotificationPreference", "send_bulk_notifications", "send_notification", "should_send"]
