import logging
import traceback

from flask import jsonify, request
from pydantic import ValidationError
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base error mapped to a JSON response by ``register_error_handlers``."""

    status_code = 400
    error = "Bad Request"

    def __init__(self, message, status_code=None, payload=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.payload = payload

    def to_dict(self):
        body = {
            "statusCode": self.status_code,
            "error": self.error,
            "message": self.message,
        }
        body.update(self.payload or {})
        return body


class BadRequestError(AppError):
    status_code = 400
    error = "Bad Request"


class UnauthorizedError(AppError):
    status_code = 401
    error = "Unauthorized"


class ForbiddenError(AppError):
    status_code = 403
    error = "Forbidden"


class NotFoundError(AppError):
    status_code = 404
    error = "Not Found"


class ConflictError(AppError):
    status_code = 409
    error = "Conflict"


class ProviderError(Exception):
    """The payment gateway rejected a call or could not be reached."""

    def __init__(self, message, status_code=None, response=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.response = response


def format_validation_errors(exc):
    errors = []
    for err in exc.errors():
        field = ".".join(str(part) for part in err.get("loc", ()))
        message = err.get("msg")
        if err.get("type") == "value_error" and "error" in err.get("ctx", {}):
            message = str(err["ctx"]["error"])
        errors.append({"property": field, "message": message})
    return errors


def register_error_handlers(app):
    """Register all error handlers for the application"""

    @app.errorhandler(AppError)
    def handle_app_error(error):
        if error.status_code >= 500:
            logger.error(f"{error.error}: {error.message} - Path: {request.path}")
        else:
            logger.info(f"{error.error}: {error.message} - Path: {request.path}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(ValidationError)
    def handle_validation_error(error):
        errors = format_validation_errors(error)
        logger.info(f"Validation failed - Path: {request.path}", extra={"errors": errors})
        first = errors[0]["message"] if errors else "Validation failed"
        return jsonify({
            "statusCode": 400,
            "error": "Bad Request",
            "message": first,
            "errors": errors,
        }), 400

    @app.errorhandler(HTTPException)
    def handle_http_exception(e):
        """
        Handles known HTTP errors (404, 405, 413, 429, ...)
        """
        if e.code >= 500:
            logger.error(f"HTTP {e.code}: {e.description} - Path: {request.path}")
        return jsonify({
            "statusCode": e.code,
            "error": e.name,
            "message": e.description,
        }), e.code

    @app.errorhandler(Exception)
    def handle_exception(e):
        """
        Handles all unexpected server errors
        Prevents stack trace leakage in production
        """
        logger.error(f"Unhandled exception - Path: {request.path}: {e}")
        if app.config.get("DEBUG", False):
            logger.error(traceback.format_exc())

        return jsonify({
            "statusCode": 500,
            "error": "Internal Server Error",
            "message": "Something went wrong. Please try again later.",
        }), 500
