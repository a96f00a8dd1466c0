import uuid
from datetime import datetime

from werkzeug.security import check_password_hash, generate_password_hash

from mansatask.extensions import db


class UserRole:
    MERCHANT = "MERCHANT"
    ADMIN = "ADMIN"


class User(db.Model):
    __tablename__ = "users"

    # ========== IDENTIFICATION ==========
    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    phone = db.Column(db.String(20), nullable=True)
    role = db.Column(db.String(20), nullable=False, default=UserRole.MERCHANT)
    password_hash = db.Column(db.String(255), nullable=False)

    # ========== PASSWORD RESET ==========
    reset_token = db.Column(db.String(64), unique=True, nullable=True)
    reset_token_expires = db.Column(db.DateTime, nullable=True)
    password_reset_at = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    products = db.relationship("Product", back_populates="user", lazy="dynamic")
    payment_links = db.relationship("PaymentLink", back_populates="user", lazy="dynamic")

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "role": self.role,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }

    def to_public_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
        }

    def __repr__(self):
        return f"<User {self.email}>"
