import uuid
from datetime import datetime

from mansatask.extensions import db


class LinkDisplayStatus:
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    EXPIRED = "EXPIRED"
    EXHAUSTED = "EXHAUSTED"


class PaymentLink(db.Model):
    __tablename__ = "payment_links"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=False)
    product_id = db.Column(db.String(36), db.ForeignKey("products.id"), nullable=True)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    amount = db.Column(db.Numeric(12, 2), nullable=False)
    slug = db.Column(db.String(64), unique=True, nullable=False, index=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    expires_at = db.Column(db.DateTime, nullable=True)
    expires_after_days = db.Column(db.Integer, nullable=True)
    max_uses = db.Column(db.Integer, nullable=True)
    current_uses = db.Column(db.Integer, nullable=False, default=0)
    deleted_at = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = db.relationship("User", back_populates="payment_links")
    product = db.relationship("Product")
    transactions = db.relationship("Transaction", back_populates="payment_link", lazy="dynamic")

    __table_args__ = (
        db.Index("idx_payment_links_user_deleted", "user_id", "deleted_at"),
    )

    # ========== VALIDITY ==========

    def is_expired(self, now=None):
        if self.expires_at is None:
            return False
        return self.expires_at < (now or datetime.utcnow())

    def is_exhausted(self):
        if self.max_uses is None:
            return False
        return (self.current_uses or 0) >= self.max_uses

    def is_valid(self, now=None):
        """Usable for a new payment: active, unexpired and under its use cap."""
        return (
            self.deleted_at is None
            and bool(self.is_active)
            and not self.is_expired(now)
            and not self.is_exhausted()
        )

    def display_status(self, now=None):
        if self.is_exhausted():
            return LinkDisplayStatus.EXHAUSTED
        if self.is_expired(now):
            return LinkDisplayStatus.EXPIRED
        if not self.is_active:
            return LinkDisplayStatus.INACTIVE
        return LinkDisplayStatus.ACTIVE

    def to_dict(self, include_product=True):
        data = {
            "id": self.id,
            "userId": self.user_id,
            "productId": self.product_id,
            "title": self.title,
            "description": self.description,
            "amount": float(self.amount) if self.amount is not None else None,
            "slug": self.slug,
            "isActive": self.is_active,
            "expiresAt": self.expires_at.isoformat() if self.expires_at else None,
            "expiresAfterDays": self.expires_after_days,
            "maxUses": self.max_uses,
            "currentUses": self.current_uses,
            "isValid": self.is_valid(),
            "displayStatus": self.display_status(),
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
        if include_product:
            data["product"] = self.product.to_dict() if self.product else None
        return data

    def to_summary(self):
        return {"id": self.id, "title": self.title, "slug": self.slug}
