"""
Send push notifications via Firebase Cloud Messaging (HTTP v1 API).
Requires FCM_PROJECT_ID and FCM_SERVICE_ACCOUNT_PATH or FCM_SERVICE_ACCOUNT_BASE64 (service account JSON).
Access tokens come from Google's OAuth endpoint using a JWT assertion signed with the service account key.
"""
import base64
import json
import logging
import threading
import time
from pathlib import Path
from typing import Any

import httpx
import jwt

from mandi_notify.services.push.types import GatewayError, PushMessage

logger = logging.getLogger(__name__)

FCM_SEND_URL = "https://fcm.googleapis.com/v1/projects/{project_id}/messages:send"
FCM_SCOPE = "https://www.googleapis.com/auth/firebase.messaging"
DEFAULT_TOKEN_URI = "https://oauth2.googleapis.com/token"
_ASSERTION_LIFETIME_SECONDS = 3600
_TOKEN_REFRESH_MARGIN_SECONDS = 300  # refresh a bit before Google's expiry
_FCM_ERROR_TYPE = "type.googleapis.com/google.firebase.fcm.v1.FcmError"


def load_service_account(path: str | None = None, base64_content: str | None = None) -> dict[str, Any] | None:
    """Load service account JSON from base64 (preferred) or a file path. Return None if not set or unreadable."""
    if base64_content:
        try:
            return json.loads(base64.b64decode(base64_content).decode("utf-8"))
        except Exception as e:
            logger.warning("FCM_SERVICE_ACCOUNT_BASE64 decode failed: %s", e)
            return None
    if path and Path(path).exists():
        try:
            return json.loads(Path(path).read_text(encoding="utf-8"))
        except Exception as e:
            logger.warning("FCM_SERVICE_ACCOUNT_PATH read failed: %s", e)
            return None
    return None


def _error_code(resp: httpx.Response) -> str:
    """FcmError detail code (UNREGISTERED, ...) when present, else the Google status (NOT_FOUND, ...)."""
    try:
        err = resp.json().get("error") or {}
    except Exception:
        return f"HTTP_{resp.status_code}"
    for detail in err.get("details") or []:
        if detail.get("@type") == _FCM_ERROR_TYPE and detail.get("errorCode"):
            return detail["errorCode"]
    return err.get("status") or f"HTTP_{resp.status_code}"


class FcmGateway:
    """FCM HTTP v1 client. One instance per process; the OAuth access token is cached on the instance."""

    provider_id = "fcm"

    def __init__(
        self,
        project_id: str,
        service_account: dict[str, Any],
        *,
        timeout: float = 10.0,
        client: httpx.Client | None = None,
    ) -> None:
        self._project_id = project_id
        self._service_account = service_account
        self._client = client or httpx.Client(timeout=timeout)
        self._token: tuple[str, float] | None = None  # (access_token, expiry_epoch)
        self._token_lock = threading.Lock()

    def close(self) -> None:
        self._client.close()

    def _build_assertion(self, now: float) -> str:
        sa = self._service_account
        token = jwt.encode(
            {
                "iss": sa["client_email"],
                "scope": FCM_SCOPE,
                "aud": sa.get("token_uri") or DEFAULT_TOKEN_URI,
                "iat": int(now),
                "exp": int(now) + _ASSERTION_LIFETIME_SECONDS,
            },
            sa["private_key"],
            algorithm="RS256",
            headers={"kid": sa.get("private_key_id")} if sa.get("private_key_id") else None,
        )
        if isinstance(token, bytes):
            token = token.decode("utf-8")
        return token

    def _access_token(self) -> str:
        with self._token_lock:
            now = time.time()
            if self._token and self._token[1] > now:
                return self._token[0]
            token_uri = self._service_account.get("token_uri") or DEFAULT_TOKEN_URI
            try:
                resp = self._client.post(
                    token_uri,
                    data={
                        "grant_type": "urn:ietf:params:oauth:grant-type:jwt-bearer",
                        "assertion": self._build_assertion(now),
                    },
                )
            except httpx.TimeoutException as e:
                raise GatewayError(f"OAuth token request timed out: {e}", code="TIMEOUT") from e
            except httpx.HTTPError as e:
                raise GatewayError(f"OAuth token request failed: {e}", code="NETWORK") from e
            if not resp.is_success:
                raise GatewayError(
                    f"OAuth token request returned {resp.status_code}: {resp.text[:300]}",
                    code="AUTH",
                    status_code=resp.status_code,
                )
            body = resp.json()
            expires_in = int(body.get("expires_in") or _ASSERTION_LIFETIME_SECONDS)
            self._token = (body["access_token"], now + expires_in - _TOKEN_REFRESH_MARGIN_SECONDS)
            return self._token[0]

    def send(self, message: PushMessage) -> str:
        url = FCM_SEND_URL.format(project_id=self._project_id)
        headers = {"authorization": f"Bearer {self._access_token()}"}
        try:
            resp = self._client.post(url, json={"message": message.to_fcm()}, headers=headers)
        except httpx.TimeoutException as e:
            raise GatewayError(f"FCM request timed out: {e}", code="TIMEOUT") from e
        except httpx.HTTPError as e:
            raise GatewayError(f"FCM request failed: {e}", code="NETWORK") from e
        if resp.status_code == 200:
            return resp.json().get("name", "")
        code = _error_code(resp)
        logger.warning("FCM returned %s (%s) for token %s...: %s", resp.status_code, code, message.token[:20], resp.text[:300])
        raise GatewayError(f"FCM error {resp.status_code}: {code}", code=code, status_code=resp.status_code)
