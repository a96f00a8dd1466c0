"""
Application configuration.

Values are read from the environment (``wsgi.py`` loads ``.env`` first) and
grouped per deployment environment. ``get_config`` picks the class from
``APP_ENV`` / ``FLASK_ENV``.
"""

import logging
import os
from datetime import timedelta
from enum import Enum

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Raised when configuration is missing or invalid"""


class Environment(str, Enum):
    DEVELOPMENT = "development"
    PRODUCTION = "production"
    TESTING = "testing"

    def __str__(self):
        return self.value


def _env_bool(name, default=False):
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _parse_duration(value, default):
    """Parse ``15m`` / ``7d`` / ``3600`` style durations."""
    if not value:
        return default
    value = value.strip().lower()
    units = {"s": "seconds", "m": "minutes", "h": "hours", "d": "days"}
    try:
        if value[-1] in units:
            return timedelta(**{units[value[-1]]: int(value[:-1])})
        return timedelta(seconds=int(value))
    except ValueError:
        raise ConfigurationError(f"Invalid duration: {value}")


class BaseConfig:
    ENV = Environment.DEVELOPMENT
    DEBUG = False
    TESTING = False
    APP_VERSION = os.getenv("APP_VERSION", "1.0.0")

    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key-change-me")

    # ========== DATABASE ==========
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///mansatask.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {"pool_pre_ping": True}

    REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")

    # ========== JWT ==========
    JWT_SECRET_KEY = os.getenv("JWT_SECRET", "dev-jwt-secret-change-me")
    JWT_REFRESH_SECRET = os.getenv("JWT_REFRESH_SECRET", "dev-jwt-refresh-secret-change-me")
    JWT_ACCESS_TOKEN_EXPIRES = _parse_duration(os.getenv("JWT_EXPIRATION"), timedelta(minutes=15))
    JWT_REFRESH_TOKEN_EXPIRES = _parse_duration(
        os.getenv("JWT_REFRESH_EXPIRATION"), timedelta(days=7)
    )
    JWT_TOKEN_LOCATION = ["headers"]
    JWT_HEADER_NAME = "Authorization"
    JWT_HEADER_TYPE = "Bearer"
    JWT_ALGORITHM = "HS256"

    PASSWORD_RESET_EXPIRES = timedelta(hours=1)

    # ========== URLS / CORS ==========
    FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3001")
    BACKEND_URL = os.getenv("BACKEND_URL", "http://localhost:3000")
    CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", FRONTEND_URL).split(",") if o.strip()]

    # ========== PAYMENT PROVIDER ==========
    MANSA_API_BASE_URL = os.getenv("MANSA_API_BASE_URL", "https://api-stage.mansatransfers.com")
    MANSA_API_KEY = os.getenv("MANSA_API_KEY", "")
    MANSA_API_SECRET = os.getenv("MANSA_API_SECRET", "")
    MANSA_API_TIMEOUT = int(os.getenv("MANSA_API_TIMEOUT", "30"))
    WEBHOOK_SECRET = os.getenv("WEBHOOK_SECRET", "")
    IDEMPOTENCY_TTL = timedelta(hours=24)

    # ========== STORAGE ==========
    AWS_ACCESS_KEY_ID = os.getenv("AWS_ACCESS_KEY_ID", "")
    AWS_SECRET_ACCESS_KEY = os.getenv("AWS_SECRET_ACCESS_KEY", "")
    AWS_REGION = os.getenv("AWS_REGION", "us-east-1")
    AWS_S3_BUCKET = os.getenv("AWS_S3_BUCKET", "")
    UPLOAD_DIR = os.getenv("UPLOAD_DIR", "uploads")
    MAX_IMAGE_SIZE = 5 * 1024 * 1024
    MAX_CONTENT_LENGTH = 10 * 1024 * 1024

    # ========== MAIL ==========
    MAIL_SERVER = os.getenv("MAIL_SERVER", os.getenv("EMAIL_HOST", "localhost"))
    MAIL_PORT = int(os.getenv("MAIL_PORT", os.getenv("EMAIL_PORT", "587")))
    MAIL_USE_TLS = _env_bool("MAIL_USE_TLS", True)
    MAIL_USERNAME = os.getenv("MAIL_USERNAME", os.getenv("EMAIL_USER"))
    MAIL_PASSWORD = os.getenv("MAIL_PASSWORD", os.getenv("EMAIL_PASSWORD"))
    MAIL_DEFAULT_SENDER = os.getenv("MAIL_DEFAULT_SENDER", "noreply@mansatask.com")
    MAIL_SUPPRESS_SEND = _env_bool("MAIL_SUPPRESS_SEND", False)

    # ========== CELERY ==========
    CELERY_BROKER_URL = os.getenv("CELERY_BROKER_URL", REDIS_URL)
    CELERY_RESULT_BACKEND = os.getenv("CELERY_RESULT_BACKEND", REDIS_URL)
    CELERY_TASK_ALWAYS_EAGER = _env_bool("CELERY_TASK_ALWAYS_EAGER", False)

    # ========== RATE LIMITING ==========
    RATELIMIT_ENABLED = _env_bool("RATE_LIMIT_ENABLED", True)
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", REDIS_URL)
    RATELIMIT_DEFAULT = "200 per hour"
    RATELIMIT_HEADERS_ENABLED = True

    # ========== OBSERVABILITY ==========
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
    LOG_JSON = _env_bool("LOG_JSON", True)
    SENTRY_DSN = os.getenv("SENTRY_DSN", "")

    def validate(self):
        return True


class DevelopmentConfig(BaseConfig):
    """Development configuration with relaxed settings"""

    ENV = Environment.DEVELOPMENT
    DEBUG = True
    LOG_JSON = _env_bool("LOG_JSON", False)
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")
    CELERY_TASK_ALWAYS_EAGER = _env_bool("CELERY_TASK_ALWAYS_EAGER", True)


class ProductionConfig(BaseConfig):
    """Production configuration with maximum security"""

    ENV = Environment.PRODUCTION
    DEBUG = False

    REQUIRED = (
        "SQLALCHEMY_DATABASE_URI",
        "JWT_SECRET_KEY",
        "JWT_REFRESH_SECRET",
        "WEBHOOK_SECRET",
        "MANSA_API_KEY",
        "MANSA_API_SECRET",
    )

    def validate(self):
        missing = [name for name in self.REQUIRED if not getattr(self, name, None)]
        if missing:
            raise ConfigurationError(f"Missing required configuration: {', '.join(missing)}")
        if self.JWT_SECRET_KEY.startswith("dev-") or self.JWT_REFRESH_SECRET.startswith("dev-"):
            raise ConfigurationError("Development JWT secrets cannot be used in production")
        if "*" in self.CORS_ORIGINS:
            raise ConfigurationError("Wildcard CORS origin '*' is not allowed in production")
        return True


class TestingConfig(BaseConfig):
    """Testing configuration"""

    ENV = Environment.TESTING
    DEBUG = False
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_ENGINE_OPTIONS = {}
    JWT_SECRET_KEY = "test-jwt-secret-key-with-enough-length"
    JWT_REFRESH_SECRET = "test-jwt-refresh-secret-key-with-enough-length"
    WEBHOOK_SECRET = "test-webhook-secret"
    MANSA_API_KEY = "test-client-key"
    MANSA_API_SECRET = "test-client-secret"
    AWS_ACCESS_KEY_ID = ""
    AWS_S3_BUCKET = ""
    MAIL_SUPPRESS_SEND = True
    CELERY_TASK_ALWAYS_EAGER = True
    RATELIMIT_ENABLED = False
    RATELIMIT_STORAGE_URI = "memory://"
    LOG_JSON = False
    SENTRY_DSN = ""


CONFIG_MAP = {
    Environment.DEVELOPMENT.value: DevelopmentConfig,
    Environment.PRODUCTION.value: ProductionConfig,
    Environment.TESTING.value: TestingConfig,
    "staging": ProductionConfig,
}


def get_config(env=None):
    """Get configuration based on environment"""
    if env is None:
        env = os.getenv("APP_ENV", os.getenv("FLASK_ENV", "development"))

    config_class = CONFIG_MAP.get(env.lower())
    if not config_class:
        raise ConfigurationError(f"Unknown environment: {env}")

    return config_class()
