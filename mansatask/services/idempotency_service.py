from datetime import datetime

from flask import current_app
from sqlalchemy.exc import IntegrityError

from mansatask.errors import ConflictError
from mansatask.extensions import db
from mansatask.models.idempotency import IdempotencyRecord


def claim(key: str):
    """
    Claim ``key`` for a new request.

    Returns ``(body, status_code)`` when a completed response is already
    stored, ``None`` when the caller now owns the key. The primary key on
    ``idempotency_records`` makes concurrent claims for the same key collide.
    """
    record = db.session.get(IdempotencyRecord, key)
    if record and record.is_expired():
        db.session.delete(record)
        db.session.commit()
        record = None

    if record:
        return _stored_or_conflict(record)

    db.session.add(IdempotencyRecord(
        key=key,
        expires_at=datetime.utcnow() + current_app.config["IDEMPOTENCY_TTL"],
    ))
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        record = db.session.get(IdempotencyRecord, key)
        if record is None:
            raise ConflictError("A request with this Idempotency-Key is already being processed")
        return _stored_or_conflict(record)
    return None


def _stored_or_conflict(record):
    if record.is_complete:
        current_app.logger.info(
            "Duplicate request detected, returning stored response",
            extra={"idempotency_key": record.key, "event": "duplicate_payment_request"},
        )
        return record.response_body, record.status_code
    raise ConflictError("A request with this Idempotency-Key is already being processed")


def store(key: str, body: dict, status_code: int):
    record = db.session.get(IdempotencyRecord, key)
    record.response_body = body
    record.status_code = status_code
    db.session.commit()


def release(key: str):
    """Drop an unfinished claim so the client may retry with the same key."""
    db.session.rollback()
    record = db.session.get(IdempotencyRecord, key)
    if record and not record.is_complete:
        db.session.delete(record)
        db.session.commit()
