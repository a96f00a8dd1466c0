# mansatask/extensions.py
"""
Flask extensions initialization module.
Extensions are created unbound here and attached in ``init_extensions``.
"""

import logging

import redis
from flask import jsonify
from flask_cors import CORS
from flask_jwt_extended import JWTManager
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_mail import Mail
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy

# Initialize extensions
db = SQLAlchemy()
jwt = JWTManager()
cors = CORS()
migrate = Migrate()
mail = Mail()
limiter = Limiter(key_func=get_remote_address)
redis_client = None

logger = logging.getLogger(__name__)


def init_extensions(app):
    """Initialize all Flask extensions."""
    init_redis(app)

    db.init_app(app)
    migrate.init_app(app, db)
    logger.info("SQLAlchemy and Flask-Migrate initialized")

    jwt.init_app(app)
    setup_jwt_callbacks()
    logger.info("JWT Manager initialized")

    cors.init_app(
        app,
        resources={r"/api/*": {"origins": app.config.get("CORS_ORIGINS", [])}},
        supports_credentials=True,
        allow_headers=["Content-Type", "Authorization", "Idempotency-Key", "X-Request-ID"],
        expose_headers=["X-Request-ID"],
    )
    logger.info("CORS initialized")

    mail.init_app(app)
    limiter.init_app(app)
    logger.info(
        "Rate limiter initialized",
        extra={"enabled": app.config.get("RATELIMIT_ENABLED"), "storage": limiter_storage(app)},
    )

    return app


def init_redis(app):
    """Initialize the Redis connection used for health checks and rate limits."""
    global redis_client
    if app.testing:
        redis_client = None
        return

    try:
        redis_client = redis.from_url(
            app.config["REDIS_URL"],
            decode_responses=True,
            socket_timeout=5,
            socket_connect_timeout=5,
            retry_on_timeout=True,
            health_check_interval=30,
        )
        redis_client.ping()
        logger.info("Redis initialized successfully")
    except redis.RedisError as e:
        logger.error(f"Failed to connect to Redis: {e}")
        if app.config.get("ENV") == "production":
            raise
        redis_client = None


def limiter_storage(app):
    uri = app.config.get("RATELIMIT_STORAGE_URI", "memory://")
    return "redis" if uri.startswith("redis") else "memory"


def setup_jwt_callbacks():
    """JSON bodies for JWT failures, shaped like every other API error."""

    @jwt.expired_token_loader
    def expired_token_callback(jwt_header, jwt_payload):
        return jsonify({
            "statusCode": 401,
            "error": "Unauthorized",
            "message": "Token has expired",
        }), 401

    @jwt.invalid_token_loader
    def invalid_token_callback(error):
        return jsonify({
            "statusCode": 401,
            "error": "Unauthorized",
            "message": "Invalid token",
        }), 401

    @jwt.unauthorized_loader
    def missing_token_callback(error):
        return jsonify({
            "statusCode": 401,
            "error": "Unauthorized",
            "message": "Unauthorized",
        }), 401


def get_redis_client():
    """Get Redis client instance with health check."""
    if redis_client:
        try:
            redis_client.ping()
            return redis_client
        except redis.RedisError:
            logger.warning("Redis connection lost")
            return None
    return None


__all__ = [
    "db", "jwt", "cors", "migrate", "mail", "limiter", "redis_client",
    "init_extensions", "get_redis_client",
]
