import uuid
from datetime import datetime, timezone

import jwt as pyjwt
from flask import current_app
from flask_jwt_extended import create_access_token

from mansatask.errors import UnauthorizedError


class TokenService:
    """
    Access tokens are issued by Flask-JWT-Extended. Refresh tokens are signed
    with their own secret so a leaked access secret cannot mint sessions.
    """

    REFRESH_TYPE = "refresh"

    @staticmethod
    def generate_tokens(user) -> dict:
        access_token = create_access_token(
            identity=user.id,
            additional_claims={"email": user.email, "role": user.role},
        )
        return {
            "accessToken": access_token,
            "refreshToken": TokenService.create_refresh_token(user),
        }

    @staticmethod
    def create_refresh_token(user) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": user.id,
            "email": user.email,
            "type": TokenService.REFRESH_TYPE,
            "jti": str(uuid.uuid4()),
            "iat": now,
            "exp": now + current_app.config["JWT_REFRESH_TOKEN_EXPIRES"],
        }
        return pyjwt.encode(
            payload,
            current_app.config["JWT_REFRESH_SECRET"],
            algorithm=current_app.config.get("JWT_ALGORITHM", "HS256"),
        )

    @staticmethod
    def decode_refresh_token(token: str) -> dict:
        try:
            payload = pyjwt.decode(
                token,
                current_app.config["JWT_REFRESH_SECRET"],
                algorithms=[current_app.config.get("JWT_ALGORITHM", "HS256")],
            )
        except pyjwt.PyJWTError:
            raise UnauthorizedError("Invalid refresh token")

        if payload.get("type") != TokenService.REFRESH_TYPE or not payload.get("sub"):
            raise UnauthorizedError("Invalid refresh token")
        return payload
