from datetime import datetime

from mansatask.extensions import db


class IdempotencyRecord(db.Model):
    """Stored response of a payment initiation, keyed by the client's Idempotency-Key."""

    __tablename__ = "idempotency_records"

    key = db.Column(db.String(255), primary_key=True)
    response_body = db.Column(db.JSON, nullable=True)
    status_code = db.Column(db.Integer, nullable=True)
    expires_at = db.Column(db.DateTime, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    @property
    def is_complete(self):
        return self.status_code is not None

    def is_expired(self, now=None):
        return self.expires_at < (now or datetime.utcnow())
