import secrets
from datetime import datetime

from flask import current_app
from sqlalchemy.exc import IntegrityError

from mansatask.errors import BadRequestError, NotFoundError
from mansatask.extensions import db
from mansatask.models.receipt import Receipt
from mansatask.models.transaction import Transaction, TransactionStatus
from mansatask.services.receipt_pdf import render_receipt_pdf
from mansatask.services.storage_service import get_storage

RECEIPT_NUMBER_ATTEMPTS = 10


def generate_receipt_number() -> str:
    for _ in range(RECEIPT_NUMBER_ATTEMPTS):
        number = f"RCP-{datetime.utcnow().year}-{secrets.randbelow(1000000):06d}"
        if not Receipt.query.filter_by(receipt_number=number).first():
            return number
    raise RuntimeError("Failed to generate unique receipt number")


def generate_receipt(*, transaction: Transaction) -> Receipt:
    """Idempotent: an existing receipt for the transaction is returned as is."""
    if transaction.status != TransactionStatus.SUCCESS:
        raise BadRequestError("Receipt can only be generated for successful transactions")

    existing = Receipt.query.filter_by(transaction_id=transaction.id).first()
    if existing:
        return existing

    receipt_number = generate_receipt_number()
    issued_at = datetime.utcnow()
    pdf_bytes = render_receipt_pdf(transaction=transaction, receipt_number=receipt_number, issued_at=issued_at)

    key = f"receipts/{receipt_number}.pdf"
    storage = get_storage()
    url = storage.upload_file(key, pdf_bytes, "application/pdf")
    if storage.storage_type == "local":
        url = f"{current_app.config['BACKEND_URL']}/api/receipts/{transaction.id}/download"

    receipt = Receipt(
        transaction_id=transaction.id,
        receipt_number=receipt_number,
        pdf_url=url,
        pdf_key=key,
        created_at=issued_at,
    )
    db.session.add(receipt)
    try:
        db.session.commit()
    except IntegrityError:
        # another request generated it first
        db.session.rollback()
        storage.delete_file(key)
        return Receipt.query.filter_by(transaction_id=transaction.id).one()

    current_app.logger.info(f"Receipt generated: {receipt_number} for transaction {transaction.id}")
    return receipt


def _owned_transaction(user_id, transaction_id):
    transaction = Transaction.query.filter_by(id=transaction_id, user_id=user_id).first()
    if not transaction:
        raise NotFoundError("Transaction not found")
    return transaction


def generate_for_user(*, user_id: str, transaction_id: str) -> Receipt:
    return generate_receipt(transaction=_owned_transaction(user_id, transaction_id))


def get_receipt(*, user_id: str, transaction_id: str) -> Receipt:
    transaction = _owned_transaction(user_id, transaction_id)
    if not transaction.receipt:
        raise NotFoundError("Receipt not found")
    return transaction.receipt


def read_pdf(receipt: Receipt) -> bytes:
    return get_storage().get_file(receipt.pdf_key or f"receipts/{receipt.receipt_number}.pdf")


def download(*, user_id: str, transaction_id: str):
    """Returns ``(pdf_bytes, filename)``."""
    receipt = get_receipt(user_id=user_id, transaction_id=transaction_id)
    return read_pdf(receipt), f"receipt-{receipt.receipt_number}.pdf"


def public_download(*, external_reference: str):
    transaction = Transaction.query.filter_by(external_reference=external_reference).first()
    if not transaction:
        raise NotFoundError("Transaction not found")

    receipt = generate_receipt(transaction=transaction)
    return read_pdf(receipt), f"receipt-{receipt.receipt_number}.pdf"
