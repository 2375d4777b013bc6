"""
Centralized error handling for dispatch, history and translation failures.
Domain exceptions plus one rule table mapping them to HTTP, so routes stay thin and new error types are easy to add.
"""
from __future__ import annotations

from fastapi import HTTPException

# ---------------------------------------------------------------------------
# Domain exceptions
# ---------------------------------------------------------------------------


class MandiNotifyError(Exception):
    """Base class for errors raised by the dispatch engine."""


class ValidationError(MandiNotifyError):
    """Missing or malformed input. Raised before any side effect."""


class NotFoundError(MandiNotifyError):
    """Referenced user or record does not exist."""


class DeliveryError(MandiNotifyError):
    """Push gateway rejected or failed to deliver a message."""

    def __init__(self, message: str, *, code: str | None = None, destination: str | None = None):
        super().__init__(message)
        self.code = code
        self.destination = destination


class InvalidDestinationError(DeliveryError):
    """Gateway reports the device token is permanently dead (uninstalled app, rotated token)."""


class TransientDeliveryError(DeliveryError):
    """Gateway failure worth retrying later (unavailable, quota, timeout)."""


class TranslationError(MandiNotifyError):
    """Translation failed; message is safe to show to the user."""

    kind = "other"

    def __init__(self, message: str, *, kind: str | None = None):
        super().__init__(message)
        if kind:
            self.kind = kind


# ---------------------------------------------------------------------------
# Constants: status codes and user-facing messages
# ---------------------------------------------------------------------------

STATUS_BAD_REQUEST = 400
STATUS_NOT_FOUND = 404
STATUS_UNPROCESSABLE = 422
STATUS_INTERNAL_ERROR = 500
STATUS_BAD_GATEWAY = 502  # push gateway failed
STATUS_SERVICE_UNAVAILABLE = 503  # quota, rate limit, provider down

MSG_TRANSLATION_QUOTA = "Translation quota exceeded. Please try again later."
MSG_TRANSLATION_SAFETY = "Content blocked by safety filters. Please rephrase your text."
MSG_TRANSLATION_TIMEOUT = "Translation request timed out. Please try again."
MSG_TRANSLATION_OTHER = "AI translation service error. Please try again."

# Translation error kind -> HTTP status
TRANSLATION_STATUS = {
    "quota": STATUS_SERVICE_UNAVAILABLE,
    "timeout": STATUS_SERVICE_UNAVAILABLE,
    "safety": STATUS_UNPROCESSABLE,
    "other": STATUS_BAD_GATEWAY,
}


# ---------------------------------------------------------------------------
# Translation backend error classification: (predicate, kind, message). First match wins.
# ---------------------------------------------------------------------------


def _is_quota_error(msg: str) -> bool:
    lower = msg.lower()
    return (
        "429" in msg
        or "insufficient_quota" in lower
        or "quota" in lower
        or "rate limit" in lower
    )


def _is_safety_error(msg: str) -> bool:
    lower = msg.lower()
    return "safety" in lower or "content_filter" in lower or "content filter" in lower


def _is_timeout_error(msg: str) -> bool:
    lower = msg.lower()
    return "timeout" in lower or "timed out" in lower


TRANSLATION_ERROR_RULES = [
    (_is_quota_error, "quota", MSG_TRANSLATION_QUOTA),
    (_is_safety_error, "safety", MSG_TRANSLATION_SAFETY),
    (_is_timeout_error, "timeout", MSG_TRANSLATION_TIMEOUT),
]


def classify_translation_error(exc: Exception) -> TranslationError:
    """Turn a backend exception into a TranslationError with a user-facing message."""
    if isinstance(exc, TranslationError):
        return exc
    msg = f"{type(exc).__name__}: {exc}"
    for predicate, kind, detail in TRANSLATION_ERROR_RULES:
        if predicate(msg):
            return TranslationError(detail, kind=kind)
    return TranslationError(MSG_TRANSLATION_OTHER, kind="other")


# ---------------------------------------------------------------------------
# HTTP mapping
# ---------------------------------------------------------------------------


def error_to_http(exc: Exception) -> HTTPException:
    """
    Map a domain exception into an HTTPException.
    Unknown exceptions become 500 with the exception message.
    """
    if isinstance(exc, ValidationError):
        return HTTPException(status_code=STATUS_BAD_REQUEST, detail=str(exc))
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=STATUS_NOT_FOUND, detail=str(exc))
    if isinstance(exc, DeliveryError):
        return HTTPException(status_code=STATUS_BAD_GATEWAY, detail=f"Failed to send notification: {exc}")
    if isinstance(exc, TranslationError):
        status = TRANSLATION_STATUS.get(exc.kind, STATUS_BAD_GATEWAY)
        return HTTPException(status_code=status, detail=f"Translation failed: {exc}")
    return HTTPException(status_code=STATUS_INTERNAL_ERROR, detail=str(exc))
