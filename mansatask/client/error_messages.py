"""
Turns API and transport errors into messages fit for end users.
"""

import re

import requests

NETWORK_ERROR_MESSAGE = (
    "Unable to connect to the server. Please check your internet connection and try again."
)
DEFAULT_MESSAGE = "Something went wrong. Please try again."

STATUS_MESSAGES = {
    400: "Invalid request. Please check your input and try again.",
    401: "You need to sign in to continue.",
    403: "You don't have permission to perform this action.",
    404: "The requested resource was not found.",
    409: "This resource already exists. Please use a different value.",
    422: "The information you provided is invalid. Please check and try again.",
    429: "Too many requests. Please wait a moment and try again.",
    500: "Our servers are experiencing issues. Please try again in a few moments.",
    502: "Our servers are experiencing issues. Please try again in a few moments.",
    503: "Our servers are experiencing issues. Please try again in a few moments.",
}

FIELD_NAMES = {
    "email": "Email address",
    "password": "Password",
    "confirmPassword": "Confirm password",
    "customerName": "Name",
    "customerPhone": "Phone number",
    "customerEmail": "Email address",
    "paymentProvider": "Payment provider",
    "title": "Title",
    "amount": "Amount",
    "price": "Price",
    "name": "Name",
    "description": "Description",
}

_AT_LEAST = re.compile(r"at least (\d+)")


def friendly_message(message: str) -> str:
    lower = message.lower()

    if "unauthorized" in lower or "invalid token" in lower or "token has expired" in lower:
        return "Your session has expired. Please sign in again."
    if "invalid email or password" in lower:
        return "The email or password you entered is incorrect. Please try again."
    if "email already exists" in lower or "email is already taken" in lower:
        return "This email address is already registered. Please use a different email or sign in."

    if "required" in lower:
        return "Please fill in all required fields."
    if "at least" in lower and ("character" in lower or "must be" in lower):
        match = _AT_LEAST.search(lower)
        if match:
            return f"Please enter at least {match.group(1)} characters."
        return "The value you entered is too short. Please check and try again."
    if "valid email" in lower:
        return "Please enter a valid email address."

    if "network error" in lower or "failed to fetch" in lower:
        return "Unable to connect to the server. Please check your internet connection."
    if "timeout" in lower or "timed out" in lower:
        return "The request took too long. Please check your connection and try again."

    if "payment" in lower or "transaction" in lower:
        if "failed" in lower:
            return "The payment could not be processed. Please check your payment details and try again."
        if "insufficient" in lower:
            return "Insufficient funds. Please check your account balance."

    if "not found" in lower:
        return "The item you are looking for could not be found."
    if "unique constraint" in lower or "duplicate" in lower:
        return "This value already exists. Please use a different value."

    return message[:1].upper() + message[1:]


def format_api_error(body: dict, status_code=None) -> str:
    errors = body.get("errors") or []
    if errors and errors[0].get("message"):
        return friendly_message(errors[0]["message"])

    if body.get("message"):
        return friendly_message(str(body["message"]))

    code = body.get("statusCode") or status_code
    if code:
        return STATUS_MESSAGES.get(code, "An error occurred. Please try again.")
    return DEFAULT_MESSAGE


def format_field_name(field: str) -> str:
    if field in FIELD_NAMES:
        return FIELD_NAMES[field]
    spaced = re.sub(r"([A-Z])", r" \1", field)
    return spaced[:1].upper() + spaced[1:]


def format_validation_errors(errors) -> str:
    """One line per field error, e.g. ``Phone number: ...``."""
    if not errors:
        return "Please check your input and try again."

    lines = []
    for error in errors:
        if not error.get("message"):
            continue
        field = format_field_name(error["property"]) if error.get("property") else "This field"
        lines.append(f"{field}: {friendly_message(error['message'])}")
    return "\n".join(lines)


def get_user_friendly_error_message(error) -> str:
    """
    Accepts a string, an ``ApiError``, a ``requests`` exception or a decoded
    error body.
    """
    # imported here; api_client imports this module
    from mansatask.client.api_client import ApiError

    if isinstance(error, str):
        return friendly_message(error)

    if isinstance(error, ApiError):
        if error.is_network_error:
            return NETWORK_ERROR_MESSAGE
        if isinstance(error.body, dict):
            return format_api_error(error.body, error.status_code)
        if error.status_code in STATUS_MESSAGES:
            return STATUS_MESSAGES[error.status_code]
        return friendly_message(str(error))

    if isinstance(error, (requests.ConnectionError, requests.Timeout)):
        return NETWORK_ERROR_MESSAGE

    if isinstance(error, dict) and ("message" in error or "statusCode" in error):
        return format_api_error(error)

    if isinstance(error, Exception) and str(error):
        return friendly_message(str(error))

    return DEFAULT_MESSAGE
