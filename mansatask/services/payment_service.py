"""
Payment initiation, status tracking and the side effects of a final status.

Flow for ``initiate_payment``:
    1. claim the Idempotency-Key (stored response is replayed)
    2. resolve and validate the payment link, check product stock
    3. reserve one link use with a conditional UPDATE and create the
       PENDING transaction in the same commit
    4. call the provider; PROCESSING on success, FAILED (use released) otherwise
    5. store the response under the key
"""

import secrets
import string
import time

from flask import current_app
from sqlalchemy import or_, update

from mansatask.errors import AppError, BadRequestError, ForbiddenError, NotFoundError, ProviderError
from mansatask.extensions import db
from mansatask.models.payment_link import PaymentLink
from mansatask.models.product import UNLIMITED_QUANTITY, Product
from mansatask.models.transaction import Transaction, TransactionStatus
from mansatask.services import idempotency_service, payment_link_service, receipt_service
from mansatask.services.mansa_client import get_mansa_client
from mansatask.tasks import dispatch
from mansatask.tasks.email_tasks import send_payment_failed_email, send_payment_success_email

REFERENCE_ALPHABET = string.ascii_uppercase + string.digits

STATUS_RANK = {
    TransactionStatus.PENDING: 0,
    TransactionStatus.PROCESSING: 1,
    TransactionStatus.SUCCESS: 2,
    TransactionStatus.FAILED: 2,
    TransactionStatus.CANCELLED: 2,
}


def generate_external_reference() -> str:
    suffix = "".join(secrets.choice(REFERENCE_ALPHABET) for _ in range(7))
    return f"TXN-{int(time.time() * 1000)}-{suffix}"


def _check_link_reference(payload):
    link_id, slug = payload.get("payment_link_id"), payload.get("slug")
    if not link_id and not slug:
        raise BadRequestError("Either paymentLinkId or slug must be provided")
    if link_id and slug:
        raise BadRequestError("Cannot provide both paymentLinkId and slug")


def _resolve_link(payload):
    link_id, slug = payload.get("payment_link_id"), payload.get("slug")
    if slug:
        return payment_link_service.get_by_slug(slug=slug)

    link = PaymentLink.query.filter_by(id=link_id, deleted_at=None).first()
    if not link:
        raise NotFoundError("Payment link not found")
    return payment_link_service.ensure_usable(link)


def _reserve_use(link):
    """Atomically take one use of ``link``; False when the cap was reached."""
    result = db.session.execute(
        update(PaymentLink)
        .where(
            PaymentLink.id == link.id,
            or_(PaymentLink.max_uses.is_(None), PaymentLink.current_uses < PaymentLink.max_uses),
        )
        .values(current_uses=PaymentLink.current_uses + 1)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def _release_use(link_id):
    db.session.execute(
        update(PaymentLink)
        .where(PaymentLink.id == link_id, PaymentLink.current_uses > 0)
        .values(current_uses=PaymentLink.current_uses - 1)
        .execution_options(synchronize_session=False)
    )


def initiate_payment(*, payload: dict, idempotency_key: str):
    """Returns ``(body, status_code)``."""
    if not idempotency_key:
        raise BadRequestError("Idempotency-Key header is required")

    _check_link_reference(payload)

    stored = idempotency_service.claim(idempotency_key)
    if stored is not None:
        return stored

    try:
        transaction = _create_transaction(payload, idempotency_key)
    except Exception:
        idempotency_service.release(idempotency_key)
        raise

    try:
        body = _submit_to_provider(transaction)
    except AppError:
        idempotency_service.release(idempotency_key)
        raise

    idempotency_service.store(idempotency_key, body, 201)
    return body, 201


def _create_transaction(payload, idempotency_key):
    link = _resolve_link(payload)

    product = link.product
    if product is not None and product.quantity is not None and product.quantity <= 0:
        raise BadRequestError(f'Product "{product.name}" is out of stock')

    if not _reserve_use(link):
        db.session.rollback()
        raise BadRequestError("Payment link has reached maximum number of uses")

    transaction = Transaction(
        user_id=link.user_id,
        payment_link_id=link.id,
        external_reference=generate_external_reference(),
        status=TransactionStatus.PENDING,
        payment_provider=payload["payment_provider"],
        customer_name=payload["customer_name"],
        customer_phone=payload["customer_phone"],
        customer_email=payload.get("customer_email"),
        amount=link.amount,
        idempotency_key=idempotency_key,
    )
    db.session.add(transaction)
    db.session.commit()

    current_app.logger.info(
        f"Transaction created: {transaction.external_reference}",
        extra={
            "external_reference": transaction.external_reference,
            "payment_link_id": link.id,
            "payment_provider": transaction.payment_provider,
            "event": "transaction_created",
        },
    )
    return transaction


def _submit_to_provider(transaction):
    try:
        provider_response = get_mansa_client().initiate_payin(
            phone_number=transaction.customer_phone,
            amount=transaction.amount,
            full_name=transaction.customer_name,
            external_reference=transaction.external_reference,
            email=transaction.customer_email,
        )
    except ProviderError as e:
        current_app.logger.error(
            f"Payment provider API call failed: {e.message}",
            extra={"external_reference": transaction.external_reference, "event": "payment_provider_error"},
        )
        transaction.status = TransactionStatus.FAILED
        transaction.failure_reason = f"Provider API error: {e.message}"
        transaction.meta = {"providerError": e.message}
        _release_use(transaction.payment_link_id)
        db.session.commit()
        raise BadRequestError("Failed to initiate payment with provider")

    transaction.provider_transaction_id = provider_response["providerTransactionId"]
    transaction.status = TransactionStatus.PROCESSING
    db.session.commit()

    current_app.logger.info(
        f"Payment initiated successfully: {transaction.external_reference}",
        extra={
            "external_reference": transaction.external_reference,
            "provider_transaction_id": transaction.provider_transaction_id,
            "event": "payment_initiated",
        },
    )

    return {
        "externalReference": transaction.external_reference,
        "status": transaction.status,
        "providerTransactionId": transaction.provider_transaction_id,
        "amount": float(transaction.amount),
        "paymentProvider": transaction.payment_provider,
    }


def get_payment_status(*, external_reference: str) -> dict:
    transaction = Transaction.query.filter_by(external_reference=external_reference).first()
    if not transaction:
        raise NotFoundError("Transaction not found")

    if transaction.is_in_flight and transaction.provider_transaction_id:
        try:
            result = get_mansa_client().check_status(transaction.provider_transaction_id)
        except ProviderError as e:
            current_app.logger.warning(
                f"Status check failed for {external_reference}: {e.message}",
                extra={"external_reference": external_reference},
            )
        else:
            apply_status(
                transaction,
                result["status"],
                failure_reason=result.get("failureReason"),
                source="poll",
            )

    return {
        "externalReference": transaction.external_reference,
        "status": transaction.status,
        "amount": float(transaction.amount),
        "paymentProvider": transaction.payment_provider,
        "customerName": transaction.customer_name,
        "failureReason": transaction.failure_reason,
        "createdAt": transaction.created_at.isoformat(),
        "updatedAt": transaction.updated_at.isoformat(),
        "paymentLink": transaction.payment_link.to_summary() if transaction.payment_link else None,
    }


def get_transaction(*, user_id: str, transaction_id: str) -> Transaction:
    transaction = db.session.get(Transaction, transaction_id)
    if not transaction:
        raise NotFoundError("Transaction not found")
    if transaction.user_id != user_id:
        raise ForbiddenError("You do not have access to this transaction")
    return transaction


def apply_status(transaction, status, *, failure_reason=None, source="webhook") -> bool:
    """
    Move ``transaction`` forward to ``status`` and run the side effects of a
    final status. Statuses only move forward and terminal ones are never
    left. The change is a conditional UPDATE against the stored status, so
    when a poll and a webhook race only one of them runs the side effects.
    Returns True when it changed.
    """
    if STATUS_RANK.get(status, 0) <= STATUS_RANK.get(transaction.status, 0):
        if status != transaction.status and transaction.status in TransactionStatus.TERMINAL:
            current_app.logger.warning(
                f"Ignoring {status} for {transaction.external_reference}: already {transaction.status}"
            )
        return False

    previous = transaction.status
    values = {"status": status}
    if status in (TransactionStatus.FAILED, TransactionStatus.CANCELLED) and failure_reason:
        values["failure_reason"] = failure_reason

    # the row may have moved on since it was loaded; only one caller wins
    lower = [s for s, rank in STATUS_RANK.items() if rank < STATUS_RANK[status]]
    result = db.session.execute(
        update(Transaction)
        .where(Transaction.id == transaction.id, Transaction.status.in_(lower))
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    db.session.commit()

    if result.rowcount != 1:
        current_app.logger.info(
            f"Ignoring {status} for {transaction.external_reference}: already moved past {previous}",
            extra={"external_reference": transaction.external_reference, "source": source},
        )
        return False

    current_app.logger.info(
        f"Transaction {transaction.external_reference}: {previous} -> {status}",
        extra={"external_reference": transaction.external_reference, "source": source, "event": "status_changed"},
    )

    if status == TransactionStatus.SUCCESS:
        handle_payment_success(transaction)
    elif status == TransactionStatus.FAILED:
        dispatch(send_payment_failed_email, transaction.id)
    return True


def handle_payment_success(transaction):
    link = transaction.payment_link
    if link is not None and link.product_id:
        db.session.execute(
            update(Product)
            .where(
                Product.id == link.product_id,
                Product.quantity > 0,
                Product.quantity < UNLIMITED_QUANTITY,
            )
            .values(quantity=Product.quantity - 1)
            .execution_options(synchronize_session=False)
        )
        db.session.commit()

    try:
        receipt_service.generate_receipt(transaction=transaction)
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(
            f"Receipt generation failed for {transaction.external_reference}: {e}", exc_info=True
        )

    dispatch(send_payment_success_email, transaction.id)
