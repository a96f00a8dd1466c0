from flask import current_app

from mansatask.errors import ConflictError, NotFoundError
from mansatask.extensions import db
from mansatask.models.user import User


def get_profile(*, user_id: str) -> User:
    user = db.session.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


def update_profile(*, user_id: str, payload: dict) -> User:
    """Partial update; the email conflict check only runs when an email is supplied."""
    user = get_profile(user_id=user_id)

    email = payload.get("email")
    if email is not None:
        email = email.lower()
        taken = User.query.filter(User.email == email, User.id != user_id).first()
        if taken:
            raise ConflictError("Email is already taken")
        user.email = email

    for field in ("name", "phone"):
        if payload.get(field) is not None:
            setattr(user, field, payload[field])

    db.session.commit()
    current_app.logger.info(f"Profile updated: {user.id}")
    return user
