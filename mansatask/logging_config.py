import logging
import logging.config
import sys

from flask import g, has_request_context


class RequestIdFilter(logging.Filter):
    """Attach the current request's correlation id to every record."""

    def filter(self, record):
        if has_request_context():
            record.request_id = g.get("request_id", "-")
        else:
            record.request_id = "-"
        return True


def build_logging_config(level="INFO", json_output=True):
    return {
        "version": 1,
        "disable_existing_loggers": False,

        "filters": {
            "request_id": {"()": RequestIdFilter},
        },

        "formatters": {
            "json": {
                "()": "pythonjsonlogger.jsonlogger.JsonFormatter",
                "format": "%(asctime)s %(levelname)s %(name)s %(request_id)s %(message)s",
                "json_ensure_ascii": False,
            },
            "console": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },

        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "json" if json_output else "console",
                "filters": ["request_id"],
                "stream": sys.stdout,
            },
        },

        "loggers": {
            "mansatask": {
                "handlers": ["console"],
                "level": level,
                "propagate": False,
            },
            "werkzeug": {"level": "WARNING"},
            "sqlalchemy.engine": {"level": "WARNING"},
            "urllib3": {"level": "WARNING"},
            "botocore": {"level": "WARNING"},
        },

        "root": {
            "handlers": ["console"],
            "level": level,
        },
    }


def configure_logging(app):
    """
    Configure logging for the application.

    Flask's ``app.logger`` shares the root handlers so request code and
    module loggers end up in the same stream.
    """
    config = build_logging_config(
        level=app.config.get("LOG_LEVEL", "INFO"),
        json_output=app.config.get("LOG_JSON", True),
    )
    logging.config.dictConfig(config)

    app.logger.handlers.clear()
    app.logger.propagate = True
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    logger = logging.getLogger(__name__)
    logger.info("Logging configured successfully")
    return logger
