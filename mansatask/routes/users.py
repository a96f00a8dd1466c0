from flask import Blueprint, jsonify
from flask_jwt_extended import get_jwt_identity, jwt_required

from mansatask.schemas import parse_body
from mansatask.schemas.auth import UpdateProfileRequest
from mansatask.services import user_service

bp = Blueprint("users", __name__, url_prefix="/api/users")


@bp.route("/profile", methods=["GET"])
@jwt_required()
def get_profile():
    user = user_service.get_profile(user_id=get_jwt_identity())
    return jsonify(user.to_dict()), 200


@bp.route("/profile", methods=["PUT"])
@jwt_required()
def update_profile():
    """Partial update; only the fields present in the body are touched."""
    data = parse_body(UpdateProfileRequest)
    user = user_service.update_profile(
        user_id=get_jwt_identity(),
        payload=data.model_dump(exclude_unset=True),
    )
    return jsonify(user.to_dict()), 200
