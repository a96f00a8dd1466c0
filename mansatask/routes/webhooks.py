from flask import Blueprint, current_app, jsonify, request

from mansatask.schemas.payments import WebhookPayload
from mansatask.services import webhook_service

bp = Blueprint("webhooks", __name__, url_prefix="/api/webhooks")


@bp.route("/payment", methods=["POST"])
def payment_webhook():
    """
    Payment status callback from the gateway.

    The signature is checked against the raw body before anything is parsed.
    Once verified, the gateway always gets a 200 so it stops retrying.
    """
    webhook_service.verify_signature(request.get_data(), request.headers.get("X-Signature", ""))

    payload = WebhookPayload.model_validate(request.get_json(silent=True) or {})
    current_app.logger.info(
        "Payment webhook received",
        extra={"provider_transaction_id": payload.transaction_id, "webhook_status": payload.status},
    )

    result = webhook_service.process_payment_webhook(payload.model_dump())
    return jsonify(result), 200
