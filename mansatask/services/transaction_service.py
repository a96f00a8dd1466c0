import math

from mansatask.models.transaction import Transaction
from mansatask.services.payment_service import get_transaction


def list_transactions(*, user_id: str, filters: dict) -> dict:
    page = filters.get("page", 1)
    limit = filters.get("limit", 20)

    query = Transaction.query.filter(Transaction.user_id == user_id)
    if filters.get("status"):
        query = query.filter(Transaction.status == filters["status"])
    if filters.get("provider"):
        query = query.filter(Transaction.payment_provider == filters["provider"])
    if filters.get("start_date"):
        query = query.filter(Transaction.created_at >= filters["start_date"])
    if filters.get("end_date"):
        query = query.filter(Transaction.created_at <= filters["end_date"])

    total = query.count()
    items = (
        query.order_by(Transaction.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    total_pages = math.ceil(total / limit) if total else 0

    return {
        "data": [t.to_dict() for t in items],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "totalPages": total_pages,
            "hasNextPage": page < total_pages,
            "hasPreviousPage": page > 1,
        },
    }


def get_user_transaction(*, user_id: str, transaction_id: str) -> dict:
    return get_transaction(user_id=user_id, transaction_id=transaction_id).to_dict(include_receipt=True)
