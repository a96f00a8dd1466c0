from mansatask.models.user import User, UserRole
from mansatask.models.product import Product, UNLIMITED_QUANTITY
from mansatask.models.payment_link import PaymentLink, LinkDisplayStatus
from mansatask.models.transaction import Transaction, TransactionStatus, PaymentProvider
from mansatask.models.receipt import Receipt
from mansatask.models.idempotency import IdempotencyRecord
from mansatask.models.webhook_event import WebhookEvent

__all__ = [
    "User", "UserRole",
    "Product", "UNLIMITED_QUANTITY",
    "PaymentLink", "LinkDisplayStatus",
    "Transaction", "TransactionStatus", "PaymentProvider",
    "Receipt",
    "IdempotencyRecord",
    "WebhookEvent",
]
