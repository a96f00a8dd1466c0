import hashlib
import secrets
from datetime import datetime

from flask import current_app
from sqlalchemy.exc import IntegrityError

from mansatask.errors import ConflictError, UnauthorizedError
from mansatask.extensions import db
from mansatask.models.user import User
from mansatask.services.token_service import TokenService
from mansatask.tasks import dispatch
from mansatask.tasks.email_tasks import send_password_reset_email

FORGOT_PASSWORD_MESSAGE = "If an account with that email exists, a password reset link has been sent."


def hash_reset_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _auth_response(user):
    return {"user": user.to_dict(), **TokenService.generate_tokens(user)}


def register(*, name: str, email: str, password: str, phone: str = None) -> dict:
    email = email.lower()
    if User.query.filter_by(email=email).first():
        raise ConflictError("User with this email already exists")

    user = User(name=name, email=email, phone=phone)
    user.set_password(password)
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("User with this email already exists")

    current_app.logger.info(f"User registered: {user.id}")
    return _auth_response(user)


def login(*, email: str, password: str) -> dict:
    user = User.query.filter_by(email=email.lower()).first()
    if not user or not user.check_password(password):
        current_app.logger.info("Failed login attempt")
        raise UnauthorizedError("Invalid email or password")

    current_app.logger.info(f"User logged in: {user.id}")
    return _auth_response(user)


def refresh(*, refresh_token: str) -> dict:
    payload = TokenService.decode_refresh_token(refresh_token)
    user = db.session.get(User, payload["sub"])
    if not user:
        raise UnauthorizedError("Invalid refresh token")

    return {"accessToken": TokenService.generate_tokens(user)["accessToken"]}


def forgot_password(*, email: str) -> dict:
    response = {"message": FORGOT_PASSWORD_MESSAGE}

    user = User.query.filter_by(email=email.lower()).first()
    if not user:
        return response

    token = secrets.token_hex(32)
    user.reset_token = hash_reset_token(token)
    user.reset_token_expires = datetime.utcnow() + current_app.config["PASSWORD_RESET_EXPIRES"]
    db.session.commit()

    reset_url = f"{current_app.config['FRONTEND_URL']}/reset-password?token={token}"
    sent = dispatch(send_password_reset_email, user.email, user.name, reset_url)

    if not sent and current_app.config.get("ENV") == "development":
        current_app.logger.warning("Password reset email not sent; returning token (development only)")
        response["resetToken"] = token

    return response


def reset_password(*, token: str, password: str) -> dict:
    user = User.query.filter(
        User.reset_token == hash_reset_token(token),
        User.reset_token_expires > datetime.utcnow(),
    ).first()
    if not user:
        raise UnauthorizedError("Invalid or expired reset token")

    user.set_password(password)
    user.reset_token = None
    user.reset_token_expires = None
    user.password_reset_at = datetime.utcnow()
    db.session.commit()

    current_app.logger.info(f"Password reset completed: {user.id}")
    return {"message": "Password has been reset successfully"}
