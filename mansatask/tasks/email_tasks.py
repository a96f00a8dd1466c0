from celery import shared_task
from celery.utils.log import get_task_logger

from mansatask.extensions import db
from mansatask.models.transaction import Transaction
from mansatask.services import email_service
from mansatask.services.storage_service import get_storage

logger = get_task_logger(__name__)

EMAIL_TASK_OPTIONS = dict(
    bind=True,
    autoretry_for=(Exception,),
    retry_backoff=30,
    retry_kwargs={"max_retries": 3},
    retry_jitter=True,
)


@shared_task(name="mansatask.send_password_reset_email", **EMAIL_TASK_OPTIONS)
def send_password_reset_email(self, email, name, reset_url):
    email_service.send_password_reset(to=email, name=name, reset_url=reset_url)


@shared_task(name="mansatask.send_payment_success_email", **EMAIL_TASK_OPTIONS)
def send_payment_success_email(self, transaction_id):
    transaction = db.session.get(Transaction, transaction_id)
    if not transaction or not transaction.customer_email:
        logger.info("No customer email for transaction", extra={"transaction_id": transaction_id})
        return

    receipt = transaction.receipt
    pdf_bytes = None
    if receipt and receipt.pdf_key:
        pdf_bytes = get_storage().get_file(receipt.pdf_key)

    email_service.send_payment_success(transaction=transaction, receipt=receipt, pdf_bytes=pdf_bytes)


@shared_task(name="mansatask.send_payment_failed_email", **EMAIL_TASK_OPTIONS)
def send_payment_failed_email(self, transaction_id):
    transaction = db.session.get(Transaction, transaction_id)
    if not transaction or not transaction.customer_email:
        logger.info("No customer email for transaction", extra={"transaction_id": transaction_id})
        return

    email_service.send_payment_failed(transaction=transaction)
