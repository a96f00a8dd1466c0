import io

from flask import Blueprint, jsonify, send_file
from flask_jwt_extended import get_jwt_identity, jwt_required

from mansatask.services import receipt_service

bp = Blueprint("receipts", __name__, url_prefix="/api/receipts")


def _pdf_response(pdf_bytes, filename):
    return send_file(
        io.BytesIO(pdf_bytes),
        mimetype="application/pdf",
        as_attachment=True,
        download_name=filename,
    )


@bp.route("/generate/<transaction_id>", methods=["POST"])
@jwt_required()
def generate_receipt(transaction_id):
    receipt = receipt_service.generate_for_user(user_id=get_jwt_identity(), transaction_id=transaction_id)
    return jsonify({
        "success": True,
        "data": receipt.to_dict(),
        "message": "Receipt generated successfully",
    }), 200


@bp.route("/public/<external_reference>/download", methods=["GET"])
def public_download(external_reference):
    """Customer-facing download; the receipt is generated on first request."""
    pdf_bytes, filename = receipt_service.public_download(external_reference=external_reference)
    return _pdf_response(pdf_bytes, filename)


@bp.route("/<transaction_id>", methods=["GET"])
@jwt_required()
def get_receipt(transaction_id):
    receipt = receipt_service.get_receipt(user_id=get_jwt_identity(), transaction_id=transaction_id)
    return jsonify({"success": True, "data": receipt.to_dict()}), 200


@bp.route("/<transaction_id>/download", methods=["GET"])
@jwt_required()
def download_receipt(transaction_id):
    pdf_bytes, filename = receipt_service.download(user_id=get_jwt_identity(), transaction_id=transaction_id)
    return _pdf_response(pdf_bytes, filename)
