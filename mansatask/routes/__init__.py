# mansatask/routes/__init__.py
import logging

logger = logging.getLogger(__name__)


def register_routes(app):
    """Register all API blueprints"""
    from mansatask.routes import (
        auth,
        users,
        products,
        payment_links,
        payments,
        webhooks,
        transactions,
        receipts,
        dashboard,
        health,
    )

    for module in (
        auth, users, products, payment_links, payments,
        webhooks, transactions, receipts, dashboard, health,
    ):
        app.register_blueprint(module.bp)

    logger.info("Registered API blueprints")
    return app
