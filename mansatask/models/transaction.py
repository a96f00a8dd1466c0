import uuid
from datetime import datetime

from mansatask.extensions import db


class TransactionStatus:
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"

    ALL = (PENDING, PROCESSING, SUCCESS, FAILED, CANCELLED)
    IN_FLIGHT = (PENDING, PROCESSING)
    TERMINAL = (SUCCESS, FAILED, CANCELLED)


class PaymentProvider:
    MTN = "MTN"
    VODAFONE = "VODAFONE"
    AIRTELTIGO = "AIRTELTIGO"

    ALL = (MTN, VODAFONE, AIRTELTIGO)


class Transaction(db.Model):
    __tablename__ = "transactions"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=False)
    payment_link_id = db.Column(db.String(36), db.ForeignKey("payment_links.id"), nullable=False)
    external_reference = db.Column(db.String(64), unique=True, nullable=False, index=True)
    provider_transaction_id = db.Column(db.String(128), unique=True, nullable=True, index=True)
    status = db.Column(db.String(20), nullable=False, default=TransactionStatus.PENDING)
    payment_provider = db.Column(db.String(20), nullable=False)
    customer_name = db.Column(db.String(255), nullable=False)
    customer_phone = db.Column(db.String(20), nullable=False)
    customer_email = db.Column(db.String(255), nullable=True)
    amount = db.Column(db.Numeric(12, 2), nullable=False)
    failure_reason = db.Column(db.Text, nullable=True)
    idempotency_key = db.Column(db.String(255), nullable=True)
    meta = db.Column("metadata", db.JSON, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    payment_link = db.relationship("PaymentLink", back_populates="transactions")
    receipt = db.relationship("Receipt", back_populates="transaction", uselist=False)

    __table_args__ = (
        db.Index("idx_transactions_user_created", "user_id", "created_at"),
        db.Index("idx_transactions_status", "status"),
    )

    @property
    def is_in_flight(self):
        return self.status in TransactionStatus.IN_FLIGHT

    def to_dict(self, include_link=True, include_receipt=False):
        data = {
            "id": self.id,
            "userId": self.user_id,
            "paymentLinkId": self.payment_link_id,
            "externalReference": self.external_reference,
            "providerTransactionId": self.provider_transaction_id,
            "status": self.status,
            "paymentProvider": self.payment_provider,
            "customerName": self.customer_name,
            "customerPhone": self.customer_phone,
            "customerEmail": self.customer_email,
            "amount": float(self.amount) if self.amount is not None else None,
            "failureReason": self.failure_reason,
            "metadata": self.meta,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
        if include_link:
            data["paymentLink"] = self.payment_link.to_summary() if self.payment_link else None
        if include_receipt:
            data["receipt"] = self.receipt.to_dict() if self.receipt else None
        return data
