from flask import Blueprint, jsonify

from mansatask.extensions import limiter
from mansatask.schemas import parse_body
from mansatask.schemas.auth import (
    ForgotPasswordRequest,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    ResetPasswordRequest,
)
from mansatask.services import auth_service

bp = Blueprint("auth", __name__, url_prefix="/api/auth")

AUTH_LIMIT = "20 per minute"


@bp.route("/register", methods=["POST"])
@limiter.limit(AUTH_LIMIT)
def register():
    """Create a merchant account and return the user with a token pair."""
    data = parse_body(RegisterRequest)
    result = auth_service.register(
        name=data.name,
        email=data.email,
        password=data.password,
        phone=data.phone,
    )
    return jsonify(result), 201


@bp.route("/login", methods=["POST"])
@limiter.limit(AUTH_LIMIT)
def login():
    data = parse_body(LoginRequest)
    return jsonify(auth_service.login(email=data.email, password=data.password)), 200


@bp.route("/refresh", methods=["POST"])
def refresh():
    data = parse_body(RefreshRequest)
    return jsonify(auth_service.refresh(refresh_token=data.refresh_token)), 200


@bp.route("/forgot-password", methods=["POST"])
@limiter.limit("5 per minute")
def forgot_password():
    """Always answers with the same message whether or not the email exists."""
    data = parse_body(ForgotPasswordRequest)
    return jsonify(auth_service.forgot_password(email=data.email)), 200


@bp.route("/reset-password", methods=["POST"])
@limiter.limit("5 per minute")
def reset_password():
    data = parse_body(ResetPasswordRequest)
    return jsonify(auth_service.reset_password(token=data.token, password=data.password)), 200
