from flask import Blueprint, jsonify, request
from flask_jwt_extended import get_jwt_identity, jwt_required

from mansatask.extensions import limiter
from mansatask.schemas import parse_body
from mansatask.schemas.payments import InitiatePaymentRequest
from mansatask.services import payment_service
from mansatask.services.mansa_client import API_LOG_SIZE, get_mansa_client

bp = Blueprint("payments", __name__, url_prefix="/api/payments")


@bp.route("/initiate", methods=["POST"])
@limiter.limit("10 per minute")
def initiate_payment():
    """
    Start a mobile-money payment for a payment link.

    Public endpoint. Requires an ``Idempotency-Key`` header; repeating a key
    replays the first response.
    """
    idempotency_key = request.headers.get("Idempotency-Key", "").strip()
    data = parse_body(InitiatePaymentRequest)
    body, status = payment_service.initiate_payment(
        payload=data.model_dump(),
        idempotency_key=idempotency_key,
    )
    return jsonify(body), status


@bp.route("/status/<external_reference>", methods=["GET"])
def get_payment_status(external_reference):
    return jsonify(payment_service.get_payment_status(external_reference=external_reference)), 200


@bp.route("/api/health", methods=["GET"])
@jwt_required()
def provider_health():
    return jsonify(get_mansa_client().health()), 200


@bp.route("/api/logs", methods=["GET"])
@jwt_required()
def provider_logs():
    limit = request.args.get("limit", API_LOG_SIZE, type=int)
    limit = max(1, min(limit, API_LOG_SIZE))
    logs = get_mansa_client().get_logs(limit)
    return jsonify({"count": len(logs), "logs": logs}), 200


@bp.route("/<transaction_id>", methods=["GET"])
@jwt_required()
def get_payment(transaction_id):
    transaction = payment_service.get_transaction(user_id=get_jwt_identity(), transaction_id=transaction_id)
    return jsonify(transaction.to_dict(include_link=True)), 200
