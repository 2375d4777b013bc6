"""Protocol for push gateways. The dispatcher only depends on this."""
from typing import Protocol

from mandi_notify.services.push.types import PushMessage


class PushGateway(Protocol):
    """Interface for FCM, the dev logger, test fakes. Same contract; only transport differs."""

    @property
    def provider_id(self) -> str:
        """Unique id (e.g. 'fcm', 'log') used in logs."""
        ...

    def send(self, message: PushMessage) -> str:
        """
        Deliver one message. Returns the provider's message id.
        Raises GatewayError with the provider error code on rejection or transport failure.
        Must be safe to call from several threads at once.
        """
        ...
