from datetime import datetime

from sqlalchemy import func, or_

from mansatask.extensions import db
from mansatask.models.payment_link import PaymentLink
from mansatask.models.product import Product
from mansatask.models.transaction import Transaction, TransactionStatus


def get_stats(*, user_id: str) -> dict:
    counts = dict(
        db.session.query(Transaction.status, func.count(Transaction.id))
        .filter(Transaction.user_id == user_id)
        .group_by(Transaction.status)
        .all()
    )
    revenue = (
        db.session.query(func.coalesce(func.sum(Transaction.amount), 0))
        .filter(Transaction.user_id == user_id, Transaction.status == TransactionStatus.SUCCESS)
        .scalar()
    )

    links = PaymentLink.query.filter_by(user_id=user_id, deleted_at=None)
    now = datetime.utcnow()
    active_links = links.filter(
        PaymentLink.is_active.is_(True),
        or_(PaymentLink.expires_at.is_(None), PaymentLink.expires_at > now),
        or_(PaymentLink.max_uses.is_(None), PaymentLink.current_uses < PaymentLink.max_uses),
    )

    recent = (
        Transaction.query.filter_by(user_id=user_id)
        .order_by(Transaction.created_at.desc())
        .limit(5)
        .all()
    )

    return {
        "totalRevenue": float(revenue or 0),
        "totalTransactions": sum(counts.values()),
        "successfulTransactions": counts.get(TransactionStatus.SUCCESS, 0),
        "pendingTransactions": counts.get(TransactionStatus.PENDING, 0) + counts.get(TransactionStatus.PROCESSING, 0),
        "failedTransactions": counts.get(TransactionStatus.FAILED, 0),
        "totalPaymentLinks": links.count(),
        "activePaymentLinks": active_links.count(),
        "totalProducts": Product.query.filter_by(user_id=user_id, deleted_at=None).count(),
        "recentTransactions": [t.to_dict() for t in recent],
    }
