from mansatask.client.api_client import ApiClient, ApiError, AuthSession, SessionExpired
from mansatask.client.error_messages import (
    NETWORK_ERROR_MESSAGE,
    format_validation_errors,
    get_user_friendly_error_message,
)
from mansatask.client.links import display_status, is_valid

__all__ = [
    "ApiClient", "ApiError", "AuthSession", "SessionExpired",
    "NETWORK_ERROR_MESSAGE", "format_validation_errors", "get_user_friendly_error_message",
    "display_status", "is_valid",
]
