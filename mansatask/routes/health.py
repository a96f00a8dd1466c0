import time
from datetime import datetime, timezone

import redis
from flask import Blueprint, current_app, jsonify
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from mansatask import extensions
from mansatask.extensions import db

bp = Blueprint("health", __name__, url_prefix="/api/health")


def _check_database():
    start = time.time()
    try:
        db.session.execute(text("SELECT 1"))
        latency = round((time.time() - start) * 1000, 2)
        return {"status": "ok", "latency_ms": latency}
    except SQLAlchemyError as e:
        db.session.rollback()
        return {"status": "error", "error": str(e)}


def _check_redis():
    client = extensions.redis_client
    if client is None:
        return {"status": "skipped", "reason": "Redis not configured"}

    start = time.time()
    try:
        client.ping()
        latency = round((time.time() - start) * 1000, 2)
        return {"status": "ok", "latency_ms": latency}
    except redis.RedisError as e:
        return {"status": "error", "error": str(e)}


@bp.route("", methods=["GET"])
def health():
    checks = {
        "database": _check_database(),
        "redis": _check_redis(),
    }
    healthy = all(check["status"] != "error" for check in checks.values())
    if not healthy:
        current_app.logger.warning("Health check degraded", extra={"checks": checks})

    return jsonify({
        "status": "ok" if healthy else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": current_app.config.get("ENV"),
        "services": checks,
    }), 200 if healthy else 503
