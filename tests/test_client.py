from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

import pytest
import requests

from mansatask.client import (
    NETWORK_ERROR_MESSAGE,
    ApiClient,
    ApiError,
    AuthSession,
    SessionExpired,
    display_status,
    format_validation_errors,
    get_user_friendly_error_message,
    is_valid,
)
from mansatask.models import LinkDisplayStatus, TransactionStatus
from tests.helpers import make_response

pytestmark = pytest.mark.client

BASE_URL = "http://api.test/api"


@pytest.fixture()
def http():
    return Mock(spec=requests.Session)


@pytest.fixture()
def sleeps():
    return []


@pytest.fixture()
def api(http, sleeps):
    auth = AuthSession()
    auth.set_auth({"id": "u1"}, "old-access", "refresh-1")
    return ApiClient(BASE_URL, session=http, auth=auth, sleep=sleeps.append)


def _iso(delta):
    return (datetime.now(timezone.utc) + delta).isoformat()


class TestErrorMessages:
    @pytest.mark.parametrize("message,expected", [
        ("Invalid email or password", "The email or password you entered is incorrect. Please try again."),
        ("User with this email already exists",
         "This email address is already registered. Please use a different email or sign in."),
        ("Password must be at least 8 characters", "Please enter at least 8 characters."),
        ("Payment link not found", "The item you are looking for could not be found."),
        ("Failed to initiate payment with provider",
         "The payment could not be processed. Please check your payment details and try again."),
        ("something odd", "Something odd"),
    ])
    def test_friendly_messages(self, message, expected):
        assert get_user_friendly_error_message(message) == expected

    def test_network_error(self):
        error = ApiError(NETWORK_ERROR_MESSAGE, is_network_error=True)
        assert error.user_message == NETWORK_ERROR_MESSAGE
        assert get_user_friendly_error_message(requests.ConnectionError()) == NETWORK_ERROR_MESSAGE

    def test_first_field_error_wins(self):
        error = ApiError("Validation failed", 400, {
            "statusCode": 400,
            "message": "Validation failed",
            "errors": [{"property": "email", "message": "value is not a valid email address"}],
        })
        assert error.user_message == "Please enter a valid email address."

    def test_status_fallback(self):
        assert get_user_friendly_error_message(ApiError("Bad Gateway", 502)) == (
            "Our servers are experiencing issues. Please try again in a few moments."
        )
        assert get_user_friendly_error_message({"statusCode": 429}) == (
            "Too many requests. Please wait a moment and try again."
        )

    def test_format_validation_errors(self):
        text = format_validation_errors([
            {"property": "customerPhone", "message": "Field required"},
            {"property": "firstName", "message": "Must be at least 2 characters"},
        ])
        assert text.splitlines() == [
            "Phone number: Please fill in all required fields.",
            "First Name: Please enter at least 2 characters.",
        ]


class TestTransport:
    def test_bearer_token_attached(self, api, http):
        http.request.return_value = make_response(200, {"id": "u1"})

        assert api.get_profile() == {"id": "u1"}
        call = http.request.call_args
        assert call.args == ("GET", f"{BASE_URL}/users/profile")
        assert call.kwargs["headers"]["Authorization"] == "Bearer old-access"
        assert call.kwargs["timeout"] == 30

    def test_refresh_then_retry_once(self, api, http):
        http.request.side_effect = [
            make_response(401, {"statusCode": 401, "message": "Unauthorized"}),
            make_response(200, {"accessToken": "new-access"}),
            make_response(200, {"id": "u1"}),
        ]

        assert api.get_profile() == {"id": "u1"}
        refresh_call, retry_call = http.request.call_args_list[1:]
        assert refresh_call.kwargs["json"] == {"refreshToken": "refresh-1"}
        assert "Authorization" not in refresh_call.kwargs["headers"]
        assert retry_call.kwargs["headers"]["Authorization"] == "Bearer new-access"
        assert api.auth.access_token == "new-access"

    def test_failed_refresh_clears_session(self, api, http):
        http.request.side_effect = [
            make_response(401, {"message": "Unauthorized"}),
            make_response(401, {"message": "Invalid refresh token"}),
        ]

        with pytest.raises(SessionExpired):
            api.get_profile()
        assert not api.auth.is_authenticated
        assert api.auth.refresh_token is None

    def test_second_401_is_not_retried_again(self, api, http):
        http.request.side_effect = [
            make_response(401, {"message": "Unauthorized"}),
            make_response(200, {"accessToken": "new-access"}),
            make_response(401, {"message": "Unauthorized"}),
        ]

        with pytest.raises(ApiError) as excinfo:
            api.get_profile()
        assert excinfo.value.status_code == 401
        assert http.request.call_count == 3

    def test_public_call_skips_refresh(self, api, http):
        http.request.return_value = make_response(401, {"message": "Invalid email or password"})

        with pytest.raises(ApiError) as excinfo:
            api.login("a@example.com", "wrong-password")
        assert str(excinfo.value) == "Invalid email or password"
        assert http.request.call_count == 1

    def test_connection_error_becomes_network_error(self, api, http):
        http.request.side_effect = requests.ConnectionError("refused")

        with pytest.raises(ApiError) as excinfo:
            api.list_products()
        assert excinfo.value.is_network_error
        assert excinfo.value.user_message == NETWORK_ERROR_MESSAGE

    def test_login_stores_tokens(self, http):
        http.request.return_value = make_response(200, {
            "user": {"id": "u2"}, "accessToken": "a", "refreshToken": "r",
        })
        api = ApiClient(BASE_URL, session=http)

        api.login("merchant@example.com", "password123")

        assert api.auth.is_authenticated
        assert api.auth.user == {"id": "u2"}
        api.logout()
        assert not api.auth.is_authenticated

    def test_download_returns_bytes(self, api, http):
        http.request.return_value = make_response(200, content=b"%PDF-1.4 receipt")
        assert api.download_public_receipt("TXN-1-ABC") == b"%PDF-1.4 receipt"


class TestPayments:
    def test_initiate_generates_idempotency_key(self, api, http):
        http.request.return_value = make_response(201, {"status": "PROCESSING"})

        api.initiate_payment({"slug": "pay-abc"})
        api.initiate_payment({"slug": "pay-abc"})

        keys = [call.kwargs["headers"]["Idempotency-Key"] for call in http.request.call_args_list]
        assert all(keys) and keys[0] != keys[1]

    def test_initiate_reuses_given_key(self, api, http):
        http.request.return_value = make_response(201, {"status": "PROCESSING"})

        api.initiate_payment({"slug": "pay-abc"}, idempotency_key="retry-key")

        assert http.request.call_args.kwargs["headers"]["Idempotency-Key"] == "retry-key"

    def test_poll_until_final(self, api, http, sleeps):
        http.request.side_effect = [
            make_response(200, {"status": TransactionStatus.PENDING}),
            make_response(200, {"status": TransactionStatus.PROCESSING}),
            make_response(200, {"status": TransactionStatus.SUCCESS}),
        ]
        seen = []

        result = api.poll_payment_status("TXN-1-ABC", on_update=lambda s: seen.append(s["status"]))

        assert result["status"] == TransactionStatus.SUCCESS
        assert seen == ["PENDING", "PROCESSING", "SUCCESS"]
        assert sleeps == [3, 3]

    def test_poll_gives_up_after_max_attempts(self, api, http, sleeps):
        http.request.return_value = make_response(200, {"status": TransactionStatus.PROCESSING})

        result = api.poll_payment_status("TXN-1-ABC", max_attempts=2)

        assert result["status"] == TransactionStatus.PROCESSING
        assert http.request.call_count == 2
        assert sleeps == [3]


class TestLinkStatus:
    @pytest.mark.parametrize("link,expected", [
        ({"isActive": True, "maxUses": 2, "currentUses": 2}, LinkDisplayStatus.EXHAUSTED),
        ({"isActive": False, "maxUses": 1, "currentUses": 1, "expiresAt": "2020-01-01T00:00:00Z"},
         LinkDisplayStatus.EXHAUSTED),
        ({"isActive": False, "expiresAt": "2020-01-01T00:00:00"}, LinkDisplayStatus.EXPIRED),
        ({"isActive": False}, LinkDisplayStatus.INACTIVE),
        ({"isActive": True, "maxUses": None, "currentUses": 7}, LinkDisplayStatus.ACTIVE),
    ])
    def test_display_status(self, link, expected):
        assert display_status(link) == expected

    def test_is_valid(self):
        assert is_valid({"isActive": True, "expiresAt": _iso(timedelta(days=1))})
        assert not is_valid({"isActive": True, "expiresAt": _iso(timedelta(days=-1))})
        assert not is_valid({"isActive": True, "deletedAt": _iso(timedelta(0))})
        assert not is_valid({"isActive": True, "maxUses": 1, "currentUses": 1})
