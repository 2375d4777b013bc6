"""Development push gateway: logs the message instead of sending it."""
import logging
import uuid

from mandi_notify.services.push.types import PushMessage

logger = logging.getLogger(__name__)


class LoggingGateway:
    provider_id = "log"

    def send(self, message: PushMessage) -> str:
        logger.info(
            "[Push][Log] token=%s... type=%s title=%s body=%s",
            message.token[:20],
            message.notification_type,
            message.title,
            message.body[:200],
        )
        return f"log-{uuid.uuid4().hex}"
