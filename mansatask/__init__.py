"""
MANSATASK application factory.

Fails fast on configuration errors, then wires logging, monitoring,
extensions, the Celery app, middleware, error handlers and blueprints.
"""

import logging
from typing import Optional

import sentry_sdk
from flask import Flask
from sentry_sdk.integrations.flask import FlaskIntegration

from mansatask.config import ConfigurationError, get_config
from mansatask.errors import register_error_handlers
from mansatask.extensions import init_extensions
from mansatask.logging_config import configure_logging
from mansatask.middleware import init_request_id_middleware
from mansatask.routes import register_routes
from mansatask.workers.celery_app import init_celery

logger = logging.getLogger(__name__)


def setup_sentry(app: Flask) -> None:
    """Initialize Sentry error tracking when a DSN is configured"""
    dsn = app.config.get("SENTRY_DSN")
    if not dsn:
        return

    sentry_sdk.init(
        dsn=dsn,
        integrations=[FlaskIntegration()],
        traces_sample_rate=0.1,
        environment=str(app.config.get("ENV")),
        release=app.config.get("APP_VERSION", "1.0.0"),
        send_default_pii=False,
    )
    app.logger.info("Sentry error tracking initialized")


def create_app(config_name: Optional[str] = None) -> Flask:
    """
    Application factory.

    Args:
        config_name: Configuration name (development, production, testing).
            Defaults to ``APP_ENV`` / ``FLASK_ENV``.

    Raises:
        ConfigurationError: If the configuration is invalid.
    """
    app = Flask(__name__)

    config = get_config(config_name)
    config.validate()
    app.config.from_object(config)

    configure_logging(app)
    app.logger.info(f"Starting MANSATASK in {app.config['ENV']} mode")

    setup_sentry(app)
    init_extensions(app)
    init_celery(app)
    init_request_id_middleware(app)
    register_error_handlers(app)
    register_routes(app)

    # models must be imported before create_all / migrations see the metadata
    from mansatask import models  # noqa: F401

    app.logger.info("Application initialized")
    return app


__all__ = ["create_app", "ConfigurationError"]
