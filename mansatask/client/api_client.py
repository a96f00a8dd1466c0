"""
HTTP client for the MANSATASK API.

Mirrors what the merchant dashboard and the public payment page do: it keeps
the token pair of the signed-in merchant, attaches the access token to every
authenticated call and, on a 401, refreshes once and replays the request.
"""

import logging
import time
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import requests

from mansatask.client.error_messages import NETWORK_ERROR_MESSAGE, get_user_friendly_error_message
from mansatask.models.transaction import TransactionStatus

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:5000/api"
DEFAULT_TIMEOUT = 30
POLL_INTERVAL_SECONDS = 3


class ApiError(Exception):
    """A non-2xx response, or a request that never got one."""

    def __init__(self, message, status_code=None, body=None, is_network_error=False):
        super().__init__(message)
        self.status_code = status_code
        self.body = body
        self.is_network_error = is_network_error

    @property
    def user_message(self) -> str:
        return get_user_friendly_error_message(self)


class SessionExpired(ApiError):
    """The access token was rejected and could not be refreshed."""


@dataclass
class AuthSession:
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    user: Optional[Dict[str, Any]] = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.access_token)

    def set_auth(self, user, access_token, refresh_token):
        self.user = user
        self.access_token = access_token
        self.refresh_token = refresh_token

    def clear(self):
        self.user = None
        self.access_token = None
        self.refresh_token = None


class ApiClient:
    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: int = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
        auth: Optional[AuthSession] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.http = session or requests.Session()
        self.auth = auth or AuthSession()
        self.sleep = sleep

    # ========== TRANSPORT ==========

    def _send(self, method, path, *, headers=None, authenticated=True, **kwargs):
        headers = dict(headers or {})
        if authenticated and self.auth.access_token:
            headers["Authorization"] = f"Bearer {self.auth.access_token}"
        try:
            return self.http.request(
                method,
                f"{self.base_url}{path}",
                headers=headers,
                timeout=self.timeout,
                **kwargs,
            )
        except (requests.ConnectionError, requests.Timeout) as e:
            logger.warning(f"API request failed: {method} {path}: {e}")
            raise ApiError(NETWORK_ERROR_MESSAGE, is_network_error=True) from e

    @staticmethod
    def _error(response) -> ApiError:
        try:
            body = response.json()
        except ValueError:
            body = None
        message = body.get("message") if isinstance(body, dict) else None
        return ApiError(message or response.reason or "Request failed", response.status_code, body)

    def _refresh_access_token(self) -> bool:
        if not self.auth.refresh_token:
            return False
        response = self._send(
            "POST",
            "/auth/refresh",
            json={"refreshToken": self.auth.refresh_token},
            authenticated=False,
        )
        if not response.ok:
            return False
        access_token = response.json().get("accessToken")
        if not access_token:
            return False
        self.auth.access_token = access_token
        return True

    def request(self, method, path, *, authenticated=True, raw=False, **kwargs):
        """
        Send a request and return the decoded JSON body (or the response
        itself when ``raw``). Authenticated calls that come back 401 trigger
        one refresh and one retry.
        """
        response = self._send(method, path, authenticated=authenticated, **kwargs)

        if response.status_code == 401 and authenticated and self.auth.refresh_token:
            try:
                refreshed = self._refresh_access_token()
            except ApiError:
                refreshed = False
            if not refreshed:
                self.auth.clear()
                raise SessionExpired("Your session has expired. Please sign in again.", 401)
            response = self._send(method, path, authenticated=True, **kwargs)

        if not response.ok:
            raise self._error(response)
        if raw:
            return response
        if not response.content:
            return None
        return response.json()

    # ========== AUTH ==========

    def register(self, *, name, email, password, phone=None):
        data = self.request(
            "POST", "/auth/register", authenticated=False,
            json={"name": name, "email": email, "password": password, "phone": phone},
        )
        self.auth.set_auth(data["user"], data["accessToken"], data["refreshToken"])
        return data

    def login(self, email, password):
        data = self.request("POST", "/auth/login", authenticated=False, json={"email": email, "password": password})
        self.auth.set_auth(data["user"], data["accessToken"], data["refreshToken"])
        return data

    def logout(self):
        self.auth.clear()

    def forgot_password(self, email):
        return self.request("POST", "/auth/forgot-password", authenticated=False, json={"email": email})

    def reset_password(self, token, password):
        return self.request(
            "POST", "/auth/reset-password", authenticated=False, json={"token": token, "password": password}
        )

    # ========== PROFILE ==========

    def get_profile(self):
        return self.request("GET", "/users/profile")

    def update_profile(self, **fields):
        profile = self.request("PUT", "/users/profile", json=fields)
        self.auth.user = profile
        return profile

    # ========== PRODUCTS ==========

    def list_products(self):
        return self.request("GET", "/products")

    def get_product(self, product_id):
        return self.request("GET", f"/products/{product_id}")

    def create_product(self, data):
        return self.request("POST", "/products", json=data)

    def update_product(self, product_id, data):
        return self.request("PUT", f"/products/{product_id}", json=data)

    def delete_product(self, product_id):
        return self.request("DELETE", f"/products/{product_id}")

    def upload_image(self, fileobj, filename, content_type):
        return self.request("POST", "/products/upload-image", files={"image": (filename, fileobj, content_type)})

    # ========== PAYMENT LINKS ==========

    def list_payment_links(self):
        return self.request("GET", "/payment-links")

    def get_payment_link(self, link_id):
        return self.request("GET", f"/payment-links/{link_id}")

    def create_payment_link(self, data):
        return self.request("POST", "/payment-links", json=data)

    def update_payment_link(self, link_id, data):
        return self.request("PUT", f"/payment-links/{link_id}", json=data)

    def delete_payment_link(self, link_id):
        return self.request("DELETE", f"/payment-links/{link_id}")

    def get_public_payment_link(self, slug):
        return self.request("GET", f"/payment-links/public/{slug}", authenticated=False)

    # ========== PAYMENTS ==========

    def initiate_payment(self, data, idempotency_key=None):
        """A fresh Idempotency-Key is generated unless one is given; pass the same key to retry safely."""
        key = idempotency_key or str(uuid.uuid4())
        return self.request(
            "POST", "/payments/initiate", authenticated=False,
            json=data, headers={"Idempotency-Key": key},
        )

    def get_payment_status(self, external_reference):
        return self.request("GET", f"/payments/status/{external_reference}", authenticated=False)

    def get_payment(self, transaction_id):
        return self.request("GET", f"/payments/{transaction_id}")

    def poll_payment_status(self, external_reference, interval=POLL_INTERVAL_SECONDS, max_attempts=None,
                            on_update=None):
        """
        Fetch the payment status every ``interval`` seconds until it is final.

        Returns the last status payload; stops early after ``max_attempts``
        fetches when one is given.
        """
        attempts = 0
        while True:
            status = self.get_payment_status(external_reference)
            attempts += 1
            if on_update is not None:
                on_update(status)
            if status.get("status") not in TransactionStatus.IN_FLIGHT:
                return status
            if max_attempts is not None and attempts >= max_attempts:
                return status
            self.sleep(interval)

    # ========== TRANSACTIONS / RECEIPTS / DASHBOARD ==========

    def list_transactions(self, **filters):
        params = {k: v for k, v in filters.items() if v is not None}
        return self.request("GET", "/transactions", params=params)

    def get_transaction(self, transaction_id):
        return self.request("GET", f"/transactions/{transaction_id}")

    def generate_receipt(self, transaction_id):
        return self.request("POST", f"/receipts/generate/{transaction_id}")

    def get_receipt(self, transaction_id):
        return self.request("GET", f"/receipts/{transaction_id}")

    def download_receipt(self, transaction_id) -> bytes:
        return self.request("GET", f"/receipts/{transaction_id}/download", raw=True).content

    def download_public_receipt(self, external_reference) -> bytes:
        response = self.request(
            "GET", f"/receipts/public/{external_reference}/download", authenticated=False, raw=True
        )
        return response.content

    def get_dashboard_stats(self):
        return self.request("GET", "/dashboard/stats")
