"""
Push gateways: FCM, dev logger.
Each gateway sends one message its own way; the Dispatcher on top builds messages, fans out
multicasts and classifies failures so callers never see provider-specific errors.
"""
from mandi_notify.services.push.base import PushGateway
from mandi_notify.services.push.dispatcher import Dispatcher, classify_gateway_error
from mandi_notify.services.push.factory import build_push_gateway
from mandi_notify.services.push.types import GatewayError, MulticastResult, PushMessage, SendResponse

__all__ = [
    "Dispatcher",
    "GatewayError",
    "MulticastResult",
    "PushGateway",
    "PushMessage",
    "SendResponse",
    "build_push_gateway",
    "classify_gateway_error",
]
