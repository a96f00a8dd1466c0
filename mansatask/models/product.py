import uuid
from datetime import datetime

from mansatask.extensions import db

UNLIMITED_QUANTITY = 999999


class Product(db.Model):
    __tablename__ = "products"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    price = db.Column(db.Numeric(12, 2), nullable=False)
    image_url = db.Column(db.String(1024), nullable=True)
    quantity = db.Column(db.Integer, nullable=False, default=UNLIMITED_QUANTITY)
    deleted_at = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = db.relationship("User", back_populates="products")

    __table_args__ = (
        db.Index("idx_products_user_deleted", "user_id", "deleted_at"),
    )

    @property
    def is_unlimited(self):
        return self.quantity is not None and self.quantity >= UNLIMITED_QUANTITY

    @property
    def in_stock(self):
        return self.quantity is None or self.quantity > 0

    def to_dict(self):
        return {
            "id": self.id,
            "userId": self.user_id,
            "name": self.name,
            "description": self.description,
            "price": float(self.price) if self.price is not None else None,
            "imageUrl": self.image_url,
            "quantity": self.quantity,
            "isUnlimited": self.is_unlimited,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
