import uuid
from datetime import datetime

from mansatask.extensions import db


class Receipt(db.Model):
    __tablename__ = "receipts"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    transaction_id = db.Column(db.String(36), db.ForeignKey("transactions.id"), unique=True, nullable=False)
    receipt_number = db.Column(db.String(32), unique=True, nullable=False, index=True)
    pdf_url = db.Column(db.String(1024), nullable=True)
    pdf_key = db.Column(db.String(512), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    transaction = db.relationship("Transaction", back_populates="receipt")

    def to_dict(self):
        return {
            "id": self.id,
            "transactionId": self.transaction_id,
            "receiptNumber": self.receipt_number,
            "pdfUrl": self.pdf_url,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
