"""Push gateway factory - returns the gateway matching settings."""
import logging

from mandi_notify.config import Settings
from mandi_notify.services.push.base import PushGateway
from mandi_notify.services.push.fcm import FcmGateway, load_service_account
from mandi_notify.services.push.logging_gateway import LoggingGateway

logger = logging.getLogger(__name__)


def build_push_gateway(settings: Settings) -> PushGateway:
    """FcmGateway when PUSH_PROVIDER=fcm and credentials load; LoggingGateway otherwise."""
    if settings.push_provider.lower() != "fcm":
        return LoggingGateway()
    service_account = load_service_account(settings.fcm_service_account_path, settings.fcm_service_account_base64)
    if not settings.fcm_project_id or not service_account:
        logger.warning("PUSH_PROVIDER=fcm but FCM project/service account not configured; logging pushes instead")
        return LoggingGateway()
    return FcmGateway(settings.fcm_project_id, service_account, timeout=settings.fcm_timeout_seconds)
