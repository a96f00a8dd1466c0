from flask import Blueprint, jsonify
from flask_jwt_extended import get_jwt_identity, jwt_required

from mansatask.schemas import parse_args
from mansatask.schemas.payments import TransactionQuery
from mansatask.services import transaction_service

bp = Blueprint("transactions", __name__, url_prefix="/api/transactions")


@bp.route("", methods=["GET"])
@jwt_required()
def list_transactions():
    """Filters: status, provider, startDate, endDate, page, limit."""
    query = parse_args(TransactionQuery)
    result = transaction_service.list_transactions(
        user_id=get_jwt_identity(),
        filters=query.model_dump(),
    )
    return jsonify(result), 200


@bp.route("/<transaction_id>", methods=["GET"])
@jwt_required()
def get_transaction(transaction_id):
    result = transaction_service.get_user_transaction(
        user_id=get_jwt_identity(),
        transaction_id=transaction_id,
    )
    return jsonify(result), 200
