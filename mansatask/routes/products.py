from flask import Blueprint, Response, jsonify, request
from flask_jwt_extended import get_jwt_identity, jwt_required

from mansatask.schemas import parse_body
from mansatask.schemas.catalog import CreateProductRequest, UpdateProductRequest
from mansatask.services import product_service

bp = Blueprint("products", __name__, url_prefix="/api/products")

IMAGE_CACHE_CONTROL = "public, max-age=31536000"


@bp.route("", methods=["POST"])
@jwt_required()
def create_product():
    data = parse_body(CreateProductRequest)
    product = product_service.create_product(
        user_id=get_jwt_identity(),
        payload=data.model_dump(exclude_unset=True),
    )
    return jsonify(product.to_dict()), 201


@bp.route("", methods=["GET"])
@jwt_required()
def list_products():
    products = product_service.list_products(user_id=get_jwt_identity())
    return jsonify([p.to_dict() for p in products]), 200


@bp.route("/upload-image", methods=["POST"])
@jwt_required()
def upload_image():
    """Multipart upload; the file travels in the ``image`` form field."""
    result = product_service.upload_image(
        user_id=get_jwt_identity(),
        file=request.files.get("image"),
    )
    return jsonify(result), 200


@bp.route("/image/<path:key>", methods=["GET"])
def get_image(key):
    data, content_type = product_service.get_image(key=key)
    response = Response(data, mimetype=content_type)
    response.headers["Cache-Control"] = IMAGE_CACHE_CONTROL
    return response


@bp.route("/<product_id>", methods=["GET"])
@jwt_required()
def get_product(product_id):
    product = product_service.get_product(user_id=get_jwt_identity(), product_id=product_id)
    return jsonify(product.to_dict()), 200


@bp.route("/<product_id>", methods=["PUT", "PATCH"])
@jwt_required()
def update_product(product_id):
    data = parse_body(UpdateProductRequest)
    product = product_service.update_product(
        user_id=get_jwt_identity(),
        product_id=product_id,
        payload=data.model_dump(exclude_unset=True),
    )
    return jsonify(product.to_dict()), 200


@bp.route("/<product_id>", methods=["DELETE"])
@jwt_required()
def delete_product(product_id):
    result = product_service.delete_product(user_id=get_jwt_identity(), product_id=product_id)
    return jsonify(result), 200
