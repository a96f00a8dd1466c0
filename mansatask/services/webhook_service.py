import hashlib
import hmac
from datetime import datetime

from flask import current_app
from sqlalchemy.exc import IntegrityError

from mansatask.errors import UnauthorizedError
from mansatask.extensions import db
from mansatask.models.transaction import Transaction
from mansatask.models.webhook_event import WebhookEvent
from mansatask.services.mansa_client import map_provider_status
from mansatask.services.payment_service import apply_status

DEFAULT_PROVIDER = "MANSA"


def compute_signature(payload: bytes, secret: str) -> str:
    return hmac.new(secret.encode(), payload, hashlib.sha256).hexdigest()


def verify_signature(payload: bytes, signature: str) -> None:
    """
    Signatures are required in production and checked whenever one is sent.
    Without a configured secret only development accepts unsigned calls.
    """
    secret = current_app.config.get("WEBHOOK_SECRET")
    env = current_app.config.get("ENV")

    if env != "production" and not signature:
        return

    if not secret:
        if env == "development":
            current_app.logger.warning("WEBHOOK_SECRET not set; skipping signature verification")
            return
        raise UnauthorizedError("Invalid webhook signature")

    if not signature:
        raise UnauthorizedError("Invalid webhook signature")

    expected = compute_signature(payload, secret)
    if not hmac.compare_digest(expected.encode(), signature.strip().lower().encode()):
        current_app.logger.warning("Webhook signature mismatch")
        raise UnauthorizedError("Invalid webhook signature")


def _record_event(payload: dict):
    """
    Returns the ``WebhookEvent`` to process, or None when this delivery was
    already processed. An earlier delivery whose processing failed is
    returned again so the redelivery can complete it.
    """
    key = dict(
        provider=(payload.get("provider") or DEFAULT_PROVIDER).upper(),
        provider_transaction_id=payload["transaction_id"],
        event_status=str(payload["status"]).upper(),
    )
    event = WebhookEvent(payload=payload, **key)
    db.session.add(event)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        existing = WebhookEvent.query.filter_by(**key).first()
        if existing is not None and not existing.is_processed:
            return existing
        return None
    return event


def process_payment_webhook(payload: dict) -> dict:
    event = _record_event(payload)
    if event is None:
        current_app.logger.info(
            "Duplicate webhook ignored", extra={"provider_transaction_id": payload["transaction_id"]}
        )
        return {"success": True, "message": "Webhook already processed"}

    transaction = Transaction.query.filter_by(provider_transaction_id=payload["transaction_id"]).first()
    if transaction is None and payload.get("external_reference"):
        transaction = Transaction.query.filter_by(external_reference=payload["external_reference"]).first()

    if transaction is None:
        current_app.logger.warning(
            "Webhook for unknown transaction", extra={"provider_transaction_id": payload["transaction_id"]}
        )
        return {"success": True, "message": "Transaction not found (logged)"}

    try:
        changed = apply_status(
            transaction,
            map_provider_status(payload["status"]),
            failure_reason=payload.get("failure_reason"),
            source="webhook",
        )
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Webhook processing failed: {e}", exc_info=True)
        return {"success": False, "message": "Webhook received but processing failed"}

    event.is_processed = True
    event.processed_at = datetime.utcnow()
    db.session.commit()

    return {
        "success": True,
        "message": "Webhook processed" if changed else "No status change",
        "externalReference": transaction.external_reference,
        "status": transaction.status,
    }
