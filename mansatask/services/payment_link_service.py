import secrets
import string
import time
from datetime import datetime, timedelta

from flask import current_app
from sqlalchemy import func

from mansatask.errors import BadRequestError, ForbiddenError, NotFoundError
from mansatask.extensions import db
from mansatask.models.payment_link import PaymentLink
from mansatask.models.product import Product
from mansatask.models.transaction import Transaction

SLUG_PREFIX = "pay-"
SLUG_ALPHABET = string.ascii_lowercase + string.digits
SLUG_LENGTH = 8
SLUG_ATTEMPTS = 10


def generate_slug() -> str:
    for _ in range(SLUG_ATTEMPTS):
        slug = SLUG_PREFIX + "".join(secrets.choice(SLUG_ALPHABET) for _ in range(SLUG_LENGTH))
        if not PaymentLink.query.filter_by(slug=slug).first():
            return slug

    current_app.logger.warning("Slug attempts exhausted, falling back to timestamp slug")
    return f"{SLUG_PREFIX}{int(time.time() * 1000):x}{secrets.choice(SLUG_ALPHABET)}"


def _check_product(user_id, product_id):
    product = Product.query.filter_by(id=product_id, user_id=user_id, deleted_at=None).first()
    if not product:
        raise NotFoundError("Product not found or you do not have access to it")
    return product


def _check_expiry_options(payload):
    if payload.get("expires_after_days") is not None and payload.get("expires_at") is not None:
        raise BadRequestError("Cannot specify both expiresAfterDays and expiresAt")


def create_payment_link(*, user_id: str, payload: dict) -> PaymentLink:
    _check_expiry_options(payload)
    if payload.get("product_id"):
        _check_product(user_id, payload["product_id"])

    expires_at = payload.get("expires_at")
    if payload.get("expires_after_days") is not None:
        expires_at = datetime.utcnow() + timedelta(days=payload["expires_after_days"])

    link = PaymentLink(
        user_id=user_id,
        product_id=payload.get("product_id"),
        title=payload["title"],
        description=payload.get("description"),
        amount=payload["amount"],
        slug=generate_slug(),
        is_active=payload.get("is_active", True),
        expires_at=expires_at,
        expires_after_days=payload.get("expires_after_days"),
        max_uses=payload.get("max_uses"),
        current_uses=0,
    )
    db.session.add(link)
    db.session.commit()

    current_app.logger.info(f"Payment link created: {link.id} ({link.slug})")
    return link


def transaction_counts(link_ids):
    if not link_ids:
        return {}
    rows = (
        db.session.query(Transaction.payment_link_id, func.count(Transaction.id))
        .filter(Transaction.payment_link_id.in_(link_ids))
        .group_by(Transaction.payment_link_id)
        .all()
    )
    return dict(rows)


def list_payment_links(*, user_id: str):
    return (
        PaymentLink.query
        .filter_by(user_id=user_id, deleted_at=None)
        .order_by(PaymentLink.created_at.desc())
        .all()
    )


def get_payment_link(*, user_id: str, link_id: str) -> PaymentLink:
    link = db.session.get(PaymentLink, link_id)
    if not link or link.deleted_at is not None:
        raise NotFoundError("Payment link not found")
    if link.user_id != user_id:
        raise ForbiddenError("You do not have access to this payment link")
    return link


def update_payment_link(*, user_id: str, link_id: str, payload: dict) -> PaymentLink:
    """``payload`` holds only the fields the client sent."""
    link = get_payment_link(user_id=user_id, link_id=link_id)
    _check_expiry_options(payload)

    if payload.get("product_id"):
        _check_product(user_id, payload["product_id"])

    for field in ("title", "description", "amount", "product_id", "is_active"):
        if field in payload:
            if field in ("title", "amount", "is_active") and payload[field] is None:
                continue
            setattr(link, field, payload[field])

    if payload.get("expires_after_days") is not None:
        link.expires_after_days = payload["expires_after_days"]
        link.expires_at = datetime.utcnow() + timedelta(days=payload["expires_after_days"])
    elif "expires_at" in payload:
        link.expires_at = payload["expires_at"]
        link.expires_after_days = None

    if "max_uses" in payload:
        link.max_uses = payload["max_uses"] or None

    db.session.commit()
    current_app.logger.info(f"Payment link updated: {link.id}")
    return link


def delete_payment_link(*, user_id: str, link_id: str) -> dict:
    link = get_payment_link(user_id=user_id, link_id=link_id)
    link.deleted_at = datetime.utcnow()
    link.is_active = False
    db.session.commit()

    current_app.logger.info(f"Payment link deleted: {link.id}")
    return {"message": "Payment link deleted successfully"}


def ensure_usable(link: PaymentLink) -> PaymentLink:
    if not link.is_active:
        raise BadRequestError("Payment link is not active")
    if link.is_expired():
        raise BadRequestError("Payment link has expired")
    if link.is_exhausted():
        raise BadRequestError("Payment link has reached maximum number of uses")
    return link


def get_by_slug(*, slug: str) -> PaymentLink:
    link = PaymentLink.query.filter_by(slug=slug).first()
    if not link or link.deleted_at is not None:
        raise NotFoundError("Payment link not found")
    return ensure_usable(link)


def public_view(link: PaymentLink) -> dict:
    data = link.to_dict()
    data["user"] = link.user.to_public_dict() if link.user else None
    return data
