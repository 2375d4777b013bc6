"""Shapes shared by all push gateways and the dispatcher. Same shape regardless of FCM or the dev logger."""
from dataclasses import dataclass, field
from typing import Any


class GatewayError(Exception):
    """Raised by a gateway when the provider rejects a send. code is the provider's error code."""

    def __init__(self, message: str, *, code: str = "UNKNOWN", status_code: int | None = None):
        super().__init__(message)
        self.code = code
        self.status_code = status_code


@dataclass
class PushMessage:
    """One message to one device token."""

    token: str
    title: str
    body: str
    data: dict[str, str] = field(default_factory=dict)
    notification_type: str = "general"
    channel_id: str = "general"
    require_interaction: bool = False

    def to_fcm(self) -> dict[str, Any]:
        """FCM HTTP v1 `message` object."""
        return {
            "token": self.token,
            "notification": {"title": self.title, "body": self.body},
            "data": self.data,
            "android": {
                "notification": {
                    "icon": "ic_notification",
                    "color": "#37ec13",
                    "sound": "default",
                    "channel_id": self.channel_id,
                },
            },
            "apns": {"payload": {"aps": {"sound": "default", "badge": 1}}},
            "webpush": {
                "notification": {
                    "icon": "/icons/icon-192x192.png",
                    "badge": "/icons/badge-72x72.png",
                    "tag": self.notification_type,
                    "requireInteraction": self.require_interaction,
                },
            },
        }


@dataclass
class SendResponse:
    """Outcome for one destination in a multicast."""

    destination: str
    success: bool
    message_id: str | None = None
    error_code: str | None = None
    invalid_destination: bool = False

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"success": self.success}
        if self.message_id:
            out["messageId"] = self.message_id
        if self.error_code:
            out["error"] = self.error_code
        return out


@dataclass
class MulticastResult:
    success_count: int = 0
    failure_count: int = 0
    responses: list[SendResponse] = field(default_factory=list)

    def invalid_destinations(self) -> list[str]:
        return [r.destination for r in self.responses if r.invalid_destination]
