"""Application settings with environment-based simple classes."""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Final

from dotenv import load_dotenv

# Public selector env var (keep neutral name to avoid collisions)
ENV_VAR: Final[str] = "APP_ENV"  # 'development' | 'testing' | 'production'

# Development-only signing key; refused outside debug and testing
DEFAULT_JWT_SECRET_KEY: Final[str] = "CHANGE_ME_JWT_ACCESS_SECRET_0123456789"


# Load .env in development (no-op when the file is missing)
load_dotenv()


def env_bool(name: str, default: bool = False) -> bool:
    """Parse a boolean flag from an environment variable.

    Parameters
    ----------
    name: str
        Environment variable to inspect.
    default: bool, optional
        Value returned when the variable is unset. Defaults to ``False``.

    Returns
    -------
    bool
        ``True`` if the value resembles ``{"1", "true", "yes", "y", "on"}``
        ignoring case; otherwise ``False`` or ``default`` when missing.
    """
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "y", "on"}


def env_int(name: str, default: int) -> int:
    """Parse an integer (e.g. a lifetime in seconds) from an environment variable.

    Parameters
    ----------
    name: str
        Environment variable to inspect.
    default: int
        Value returned when the variable is unset or not a base-10 integer.

    Returns
    -------
    int
        Parsed value, or ``default``.
    """
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw.strip(), 10)
    except ValueError:
        return default


class BaseConfig:
    """Base configuration shared across environments.

    Attributes
    ----------
    API_BASE_PREFIX: str
        Root path for registering API blueprints.
    SECRET_KEY: str
        Flask secret. Defaults to a development-safe placeholder.
    JWT_SECRET_KEY: str
        Key used by ``flask-jwt-extended`` to sign access tokens. Refresh
        tokens are opaque and never signed with it.
    JWT_ACCESS_EXPIRES_IN: int
        Access-token lifetime in seconds (15 minutes by default).
    JWT_REFRESH_EXPIRES_IN: int
        Refresh-token lifetime in seconds (7 days by default).
    REFRESH_COOKIE_NAME: str
        Cookie carrying the refresh token.
    REFRESH_COOKIE_SECURE: bool
        Emit the refresh cookie with the ``Secure`` attribute.
    REFRESH_TOKEN_BACKEND: str
        ``"sql"`` (default), ``"redis"`` or ``"memory"``.
    REFRESH_TOKEN_MAX_ATTEMPTS: int
        Retry budget when a freshly generated refresh token collides.
    PASSWORD_MIN_LENGTH: int
        Minimum password length enforced by the session layer.
    REDIS_URL: str | None
        Redis connection string, required by the ``redis`` backend.
    SQLALCHEMY_DATABASE_URI: str
        Database connection string consumed by SQLAlchemy.
    LOG_LEVEL: str
        Root logging verbosity (``INFO`` by default).
    CORS_ORIGINS: str
        Comma-separated list of allowed origins for CORS.
    AUTH_LOGIN_RATE_LIMIT: str
        Flask-Limiter expression applied to the login endpoint.

    Notes
    -----
    Values are primarily sourced from environment variables, enabling
    configuration without code changes.
    """

    API_BASE_PREFIX = "/api"

    # Secrets / security
    SECRET_KEY = os.getenv("SECRET_KEY", "CHANGE_ME")
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", DEFAULT_JWT_SECRET_KEY)
    JWT_TOKEN_LOCATION = ["headers"]

    # Session lifetimes
    JWT_ACCESS_EXPIRES_IN = env_int("JWT_ACCESS_EXPIRES_IN", 900)
    JWT_REFRESH_EXPIRES_IN = env_int("JWT_REFRESH_EXPIRES_IN", 604800)

    # Refresh tokens
    REFRESH_COOKIE_NAME = os.getenv("REFRESH_COOKIE_NAME", "refresh_token")
    REFRESH_COOKIE_SECURE = env_bool("REFRESH_COOKIE_SECURE", False)
    REFRESH_TOKEN_BACKEND = os.getenv("REFRESH_TOKEN_BACKEND", "sql")
    REFRESH_TOKEN_MAX_ATTEMPTS = env_int("REFRESH_TOKEN_MAX_ATTEMPTS", 5)
    REDIS_URL = os.getenv("REDIS_URL")

    # Credentials
    PASSWORD_MIN_LENGTH = env_int("PASSWORD_MIN_LENGTH", 8)

    # DB
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///./dev.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)

    # Flask & JSON
    JSON_SORT_KEYS = False
    PROPAGATE_EXCEPTIONS = False

    # Logging & CORS
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:3000")
    USE_PROXYFIX = env_bool("USE_PROXYFIX", True)

    # Rate limiting
    AUTH_LOGIN_RATE_LIMIT = os.getenv("AUTH_LOGIN_RATE_LIMIT", "5 per minute")
    RATELIMIT_ENABLED = env_bool("RATELIMIT_ENABLED", True)
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")

    # Flask built-ins
    DEBUG = False
    TESTING = False


class DevelopmentConfig(BaseConfig):
    """Configuration tailored for local development.

    Notes
    -----
    Enables debug mode by default and honors ``SQLALCHEMY_ECHO`` for verbose
    SQL logging when requested.
    """

    DEBUG = env_bool("FLASK_DEBUG", True)
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)
    CORS_MAX_AGE = 600  # 10 minutes


class TestingConfig(BaseConfig):
    """Configuration for automated test runs.

    Notes
    -----
    - Forces ``TESTING`` mode and disables debug logs.
    - Uses an in-memory SQLite database unless ``TEST_DATABASE_URL`` is set.
    - Disables rate limiting so suites can log in repeatedly.
    """

    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)
    PROPAGATE_EXCEPTIONS = True
    RATELIMIT_ENABLED = False


class ProductionConfig(BaseConfig):
    """Configuration defaults for production deployments.

    Notes
    -----
    Keeps debug and SQL echoing disabled and always marks the refresh cookie
    as ``Secure``.
    """

    DEBUG = False
    SQLALCHEMY_ECHO = False
    PROPAGATE_EXCEPTIONS = False
    REFRESH_COOKIE_SECURE = True



def validate_secrets(config: Mapping[str, object]) -> None:
    """Refuse to sign tokens with a missing or placeholder secret.

    Debug and testing configurations may keep the development default.

    Raises
    ------
    RuntimeError
        If ``JWT_SECRET_KEY`` is unset or still the development default while
        neither ``DEBUG`` nor ``TESTING`` is enabled.
    """
    if config.get("DEBUG") or config.get("TESTING"):
        return
    secret = config.get("JWT_SECRET_KEY")
    if not secret or secret == DEFAULT_JWT_SECRET_KEY:
        raise RuntimeError("JWT_SECRET_KEY environment variable is not set")


# Map names -> classes (simple, explicit)
CONFIG_MAP: Mapping[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config() -> type[BaseConfig]:
    """Return the configuration class inferred from ``APP_ENV``.

    Returns
    -------
    type[BaseConfig]
        Class to pass to :meth:`flask.Config.from_object`.

    Notes
    -----
    Falls back to :class:`DevelopmentConfig` when ``APP_ENV`` is unset or
    unknown.
    """
    name = os.getenv(ENV_VAR, "development").strip().lower()
    return CONFIG_MAP.get(name, DevelopmentConfig)
