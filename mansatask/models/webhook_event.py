import uuid
from datetime import datetime

from mansatask.extensions import db


class WebhookEvent(db.Model):
    __tablename__ = "webhook_events"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    provider = db.Column(db.String(32), nullable=False)
    provider_transaction_id = db.Column(db.String(128), nullable=False)
    event_status = db.Column(db.String(32), nullable=False)
    payload = db.Column(db.JSON, nullable=True)
    is_processed = db.Column(db.Boolean, nullable=False, default=False)
    received_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    processed_at = db.Column(db.DateTime, nullable=True)

    __table_args__ = (
        db.UniqueConstraint(
            "provider", "provider_transaction_id", "event_status",
            name="uq_webhook_provider_event",
        ),
    )
