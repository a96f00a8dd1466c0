from flask import Blueprint, jsonify
from flask_jwt_extended import get_jwt_identity, jwt_required

from mansatask.schemas import parse_body
from mansatask.schemas.catalog import CreatePaymentLinkRequest, UpdatePaymentLinkRequest
from mansatask.services import payment_link_service

bp = Blueprint("payment_links", __name__, url_prefix="/api/payment-links")


@bp.route("", methods=["POST"])
@jwt_required()
def create_payment_link():
    data = parse_body(CreatePaymentLinkRequest)
    link = payment_link_service.create_payment_link(
        user_id=get_jwt_identity(),
        payload=data.model_dump(exclude_unset=True),
    )
    return jsonify(link.to_dict()), 201


@bp.route("", methods=["GET"])
@jwt_required()
def list_payment_links():
    """Newest first, each link with its product and transaction count."""
    links = payment_link_service.list_payment_links(user_id=get_jwt_identity())
    counts = payment_link_service.transaction_counts([link.id for link in links])

    items = []
    for link in links:
        data = link.to_dict()
        data["transactionCount"] = counts.get(link.id, 0)
        items.append(data)
    return jsonify(items), 200


@bp.route("/public/<slug>", methods=["GET"])
def get_public_payment_link(slug):
    link = payment_link_service.get_by_slug(slug=slug)
    return jsonify(payment_link_service.public_view(link)), 200


@bp.route("/<link_id>", methods=["GET"])
@jwt_required()
def get_payment_link(link_id):
    link = payment_link_service.get_payment_link(user_id=get_jwt_identity(), link_id=link_id)
    return jsonify(link.to_dict()), 200


@bp.route("/<link_id>", methods=["PUT", "PATCH"])
@jwt_required()
def update_payment_link(link_id):
    data = parse_body(UpdatePaymentLinkRequest)
    link = payment_link_service.update_payment_link(
        user_id=get_jwt_identity(),
        link_id=link_id,
        payload=data.model_dump(exclude_unset=True),
    )
    return jsonify(link.to_dict()), 200


@bp.route("/<link_id>", methods=["DELETE"])
@jwt_required()
def delete_payment_link(link_id):
    result = payment_link_service.delete_payment_link(user_id=get_jwt_identity(), link_id=link_id)
    return jsonify(result), 200
