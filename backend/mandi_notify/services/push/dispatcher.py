"""
Dispatcher: builds push messages and sends them through a PushGateway, normalizing outcomes.

Single sends raise DeliveryError subclasses; multicast never raises for per-recipient failures and
returns a MulticastResult instead. Neither path writes history or touches device tokens; callers
decide what to record and which tokens to evict.
"""
import json
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime, timezone
from typing import Any

from mandi_notify.core.constants import MULTICAST_BATCH_LIMIT, MULTICAST_MAX_WORKERS
from mandi_notify.core.errors import DeliveryError, InvalidDestinationError, TransientDeliveryError
from mandi_notify.services.notification_types import REQUIRE_INTERACTION_TYPES, channel_id_for, normalize_type
from mandi_notify.services.push.base import PushGateway
from mandi_notify.services.push.types import GatewayError, MulticastResult, PushMessage, SendResponse

logger = logging.getLogger(__name__)

# Provider codes meaning the token will never work again
INVALID_DESTINATION_CODES = frozenset(
    {
        "UNREGISTERED",
        "SENDER_ID_MISMATCH",
        "registration-token-not-registered",
        "messaging/registration-token-not-registered",
        "invalid-registration-token",
        "messaging/invalid-registration-token",
    }
)
# Provider codes worth retrying later
TRANSIENT_CODES = frozenset({"UNAVAILABLE", "INTERNAL", "QUOTA_EXCEEDED", "TIMEOUT", "NETWORK"})


def classify_gateway_error(err: GatewayError, destination: str | None = None) -> DeliveryError:
    """Map a provider error to InvalidDestinationError, TransientDeliveryError or plain DeliveryError."""
    code = err.code or "UNKNOWN"
    msg = str(err)
    if code in INVALID_DESTINATION_CODES:
        return InvalidDestinationError(msg, code=code, destination=destination)
    if code in TRANSIENT_CODES or (err.status_code is not None and (err.status_code == 429 or err.status_code >= 500)):
        return TransientDeliveryError(msg, code=code, destination=destination)
    return DeliveryError(msg, code=code, destination=destination)


def _stringify(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return str(value)


def _chunks(items: list[str], size: int):
    for i in range(0, len(items), size):
        yield i, items[i : i + size]


class Dispatcher:
    """Wraps one PushGateway. Safe to share across requests and scheduler threads."""

    def __init__(
        self,
        gateway: PushGateway,
        *,
        max_workers: int = MULTICAST_MAX_WORKERS,
        batch_limit: int = MULTICAST_BATCH_LIMIT,
    ) -> None:
        self.gateway = gateway
        self._max_workers = max(1, max_workers)
        self._batch_limit = max(1, batch_limit)

    def build_message(
        self,
        destination: str,
        title: str,
        body: str,
        data: dict[str, Any] | None = None,
        notification_type: str | None = None,
        user_id: str | None = None,
    ) -> PushMessage:
        """Data payload carries type, timestamp, userId (single sends) and the caller's data, all as strings."""
        ntype = normalize_type(notification_type)
        payload: dict[str, str] = {
            "type": ntype,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        if user_id:
            payload["userId"] = user_id
        for key, value in (data or {}).items():
            if value is not None:
                payload[str(key)] = _stringify(value)
        return PushMessage(
            token=destination,
            title=title,
            body=body,
            data=payload,
            notification_type=ntype,
            channel_id=channel_id_for(ntype),
            require_interaction=ntype in REQUIRE_INTERACTION_TYPES,
        )

    def send(
        self,
        destination: str,
        title: str,
        body: str,
        data: dict[str, Any] | None = None,
        notification_type: str | None = None,
        user_id: str | None = None,
    ) -> str:
        """Send to one destination. Returns the message id; raises DeliveryError (or a subclass) on failure."""
        message = self.build_message(destination, title, body, data, notification_type, user_id)
        try:
            return self.gateway.send(message)
        except GatewayError as e:
            raise classify_gateway_error(e, destination) from e

    def _send_one(self, message: PushMessage) -> SendResponse:
        try:
            message_id = self.gateway.send(message)
            return SendResponse(destination=message.token, success=True, message_id=message_id)
        except GatewayError as e:
            err = classify_gateway_error(e, message.token)
            return SendResponse(
                destination=message.token,
                success=False,
                error_code=err.code,
                invalid_destination=isinstance(err, InvalidDestinationError),
            )
        except Exception as e:
            logger.warning("Push to %s... failed unexpectedly: %s", message.token[:20], e, exc_info=True)
            return SendResponse(destination=message.token, success=False, error_code="UNKNOWN")

    def send_multicast(
        self,
        destinations: list[str],
        title: str,
        body: str,
        data: dict[str, Any] | None = None,
        notification_type: str | None = None,
    ) -> MulticastResult:
        """
        Send the same notification to many destinations.
        Destinations are chunked to the gateway batch limit; sends within a chunk run concurrently.
        Responses are returned in input order; one failure never cancels the others.
        """
        result = MulticastResult()
        if not destinations:
            return result
        responses: list[SendResponse | None] = [None] * len(destinations)
        for offset, chunk in _chunks(list(destinations), self._batch_limit):
            messages = [self.build_message(d, title, body, data, notification_type) for d in chunk]
            max_workers = min(len(messages), self._max_workers)
            with ThreadPoolExecutor(max_workers=max_workers) as executor:
                future_to_index = {
                    executor.submit(self._send_one, msg): offset + i for i, msg in enumerate(messages)
                }
                for future in as_completed(future_to_index):
                    idx = future_to_index[future]
                    try:
                        responses[idx] = future.result()
                    except Exception as e:
                        logger.exception("Multicast future for destination %s raised: %s", idx, e)
                        responses[idx] = SendResponse(destination=destinations[idx], success=False, error_code="UNKNOWN")
        result.responses = [r for r in responses if r is not None]
        result.success_count = sum(1 for r in result.responses if r.success)
        result.failure_count = len(result.responses) - result.success_count
        logger.info(
            "Multicast via %s: %s/%s successful",
            getattr(self.gateway, "provider_id", "gateway"),
            result.success_count,
            len(destinations),
        )
        return result
