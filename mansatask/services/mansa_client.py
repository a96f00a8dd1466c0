"""
HTTP client for the Mansa Transfers mobile-money gateway.

Authentication tokens are cached per process. Every call is recorded in a
short in-memory log (secrets redacted) exposed through ``/api/payments/api/logs``.
"""

import logging
import threading
import time
from collections import deque
from datetime import datetime

import requests
from flask import current_app

from mansatask.errors import ProviderError
from mansatask.models.transaction import TransactionStatus

logger = logging.getLogger(__name__)

AUTH_PATH = "/api/v1/xyz/authenticate"
INITIATE_PATH = "/api/v1/xyz/initiate"
STATUS_PATH = "/api/v1/xyz/check-status"

TOKEN_TTL_SECONDS = 55 * 60
API_LOG_SIZE = 50
DEFAULT_CUSTOMER_EMAIL = "customer@example.com"
REDACTED = "***"
SENSITIVE_KEYS = {"client-key", "client-secret", "authorization", "token", "accesstoken", "access_token"}

STATUS_MAP = {
    "SUCCESS": TransactionStatus.SUCCESS,
    "COMPLETED": TransactionStatus.SUCCESS,
    "SUCCESSFUL": TransactionStatus.SUCCESS,
    "CONFIRMED": TransactionStatus.SUCCESS,
    "FAILED": TransactionStatus.FAILED,
    "FAILURE": TransactionStatus.FAILED,
    "REJECTED": TransactionStatus.FAILED,
    "PROCESSING": TransactionStatus.PROCESSING,
    "INITIATED": TransactionStatus.PROCESSING,
    "CANCELLED": TransactionStatus.CANCELLED,
    "CANCELED": TransactionStatus.CANCELLED,
}


def map_provider_status(status) -> str:
    if not status:
        return TransactionStatus.PENDING
    return STATUS_MAP.get(str(status).strip().upper(), TransactionStatus.PENDING)


def redact(value):
    if isinstance(value, dict):
        return {
            k: (REDACTED if str(k).lower() in SENSITIVE_KEYS else redact(v))
            for k, v in value.items()
        }
    if isinstance(value, list):
        return [redact(v) for v in value]
    return value


def _first(data, *paths):
    """First non-empty value found along dotted ``paths`` in nested dicts."""
    for path in paths:
        node = data
        for part in path.split("."):
            node = node.get(part) if isinstance(node, dict) else None
            if node is None:
                break
        if node not in (None, ""):
            return node
    return None


class MansaClient:
    def __init__(self, base_url, client_key, client_secret, timeout=30):
        self.base_url = base_url.rstrip("/")
        self.client_key = client_key
        self.client_secret = client_secret
        self.timeout = timeout
        self.session = requests.Session()
        self._token = None
        self._token_expires_at = 0
        self._lock = threading.Lock()
        self.api_logs = deque(maxlen=API_LOG_SIZE)

    # ========== LOGGING ==========

    def _record(self, method, path, *, request_headers=None, request_body=None,
                status_code=None, response_body=None, duration_ms=None, error=None):
        self.api_logs.appendleft({
            "timestamp": datetime.utcnow().isoformat(),
            "method": method,
            "url": f"{self.base_url}{path}",
            "requestHeaders": redact(request_headers or {}),
            "requestBody": redact(request_body),
            "statusCode": status_code,
            "responseBody": redact(response_body),
            "durationMs": duration_ms,
            "error": error,
        })

    def get_logs(self, limit=API_LOG_SIZE):
        return list(self.api_logs)[:limit]

    def _request(self, method, path, *, headers=None, json=None, params=None):
        started = time.monotonic()
        try:
            response = self.session.request(
                method,
                f"{self.base_url}{path}",
                headers=headers,
                json=json,
                params=params,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            duration = int((time.monotonic() - started) * 1000)
            self._record(method, path, request_headers=headers, request_body=json,
                         duration_ms=duration, error=str(e))
            logger.error(f"Mansa API request failed: {method} {path}: {e}")
            raise ProviderError(f"Unable to reach payment provider: {e}")

        duration = int((time.monotonic() - started) * 1000)
        try:
            body = response.json()
        except ValueError:
            body = {"raw": response.text[:500]}

        self._record(method, path, request_headers=headers, request_body=json,
                     status_code=response.status_code, response_body=body, duration_ms=duration)
        logger.info(
            "Mansa API call",
            extra={"method": method, "path": path, "status": response.status_code, "duration_ms": duration},
        )

        if response.status_code >= 400:
            message = _first(body, "message", "error", "data.message") or response.reason
            raise ProviderError(str(message), status_code=response.status_code, response=body)
        return body

    # ========== AUTH ==========

    def authenticate(self, force=False) -> str:
        with self._lock:
            if not force and self._token and time.time() < self._token_expires_at:
                return self._token

            if not self.client_key or not self.client_secret:
                raise ProviderError("Payment provider credentials are not configured")

            body = self._request(
                "POST",
                AUTH_PATH,
                headers={"client-key": self.client_key, "client-secret": self.client_secret},
            )
            token = _first(
                body,
                "token", "accessToken", "access_token",
                "data.token", "data.accessToken", "data.access_token",
                "result.token", "result.accessToken",
            )
            if not token:
                raise ProviderError("Payment provider did not return an access token", response=body)

            self._token = token
            self._token_expires_at = time.time() + TOKEN_TTL_SECONDS
            logger.info("Authenticated with Mansa API")
            return token

    def _auth_headers(self):
        return {
            "client-key": self.client_key,
            "client-secret": self.client_secret,
            "Authorization": f"Bearer {self.authenticate()}",
            "Accept": "application/json",
        }

    # ========== PAYMENTS ==========

    def initiate_payin(self, *, phone_number, amount, full_name, external_reference, email=None) -> dict:
        payload = {
            "paymentMode": "MOMO",
            "phoneNumber": phone_number,
            "transactionType": "payin",
            "amount": float(amount),
            "fullName": full_name,
            "emailAddress": email or DEFAULT_CUSTOMER_EMAIL,
            "currencyCode": "XAF",
            "countryCode": "CM",
            "externalReference": external_reference,
        }
        body = self._request("POST", INITIATE_PATH, headers=self._auth_headers(), json=payload)

        provider_id = _first(
            body,
            "data.internalPaymentId",
            "data.reference",
            "data.transactionId",
            "reference",
            "transactionId",
        )
        if not provider_id:
            raise ProviderError("Payment provider did not return a transaction id", response=body)

        return {
            "providerTransactionId": str(provider_id),
            "status": TransactionStatus.PENDING,
            "message": _first(body, "message") or "Payment initiated successfully",
        }

    def check_status(self, reference) -> dict:
        body = self._request(
            "GET", STATUS_PATH, headers=self._auth_headers(), params={"reference": reference}
        )
        raw_status = _first(body, "data.status", "data.transactionStatus", "status")
        return {
            "status": map_provider_status(raw_status),
            "providerStatus": raw_status,
            "failureReason": _first(body, "data.failureReason", "data.message"),
            "raw": body,
        }

    def health(self) -> dict:
        try:
            self.authenticate(force=True)
            return {"status": "ok", "baseUrl": self.base_url}
        except ProviderError as e:
            return {"status": "error", "baseUrl": self.base_url, "message": e.message}


def get_mansa_client() -> MansaClient:
    client = current_app.extensions.get("mansa_client")
    if client is None:
        config = current_app.config
        client = MansaClient(
            base_url=config["MANSA_API_BASE_URL"],
            client_key=config["MANSA_API_KEY"],
            client_secret=config["MANSA_API_SECRET"],
            timeout=config.get("MANSA_API_TIMEOUT", 30),
        )
        current_app.extensions["mansa_client"] = client
    return client
