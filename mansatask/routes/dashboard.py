from flask import Blueprint, jsonify
from flask_jwt_extended import get_jwt_identity, jwt_required

from mansatask.services import dashboard_service

bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")


@bp.route("/stats", methods=["GET"])
@jwt_required()
def stats():
    return jsonify({"success": True, "data": dashboard_service.get_stats(user_id=get_jwt_identity())}), 200
