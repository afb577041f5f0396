"""Global Flask extension instances and initialization helpers."""

from __future__ import annotations

from typing import TYPE_CHECKING

import redis  # type: ignore[import-untyped]
from flask import Flask
from flask_jwt_extended import JWTManager
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy
from redis.exceptions import RedisError  # type: ignore[import-untyped]
from sqlalchemy import MetaData

if TYPE_CHECKING:
    from settleup.services._shared.ports import RefreshTokenStore

# Global naming convention for all constraints
convention = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=convention)

# Global singletons (import-safe)
db: SQLAlchemy = SQLAlchemy(session_options={"autoflush": False}, metadata=metadata)
migrate = Migrate(render_as_batch=True)
jwt = JWTManager()
limiter = Limiter(key_func=get_remote_address)
redis_client: redis.Redis | None = None

REFRESH_STORE_KEY = "refresh_token_store"


def init_app(app: Flask) -> None:
    """Initialize SQLAlchemy, migrations, JWT, rate limiting and the refresh store.

    Parameters
    ----------
    app: flask.Flask
        Application used to bind extension instances. This call imports the
        :mod:`settleup.models` package to ensure SQLAlchemy metadata is ready
        for migrations.
    """
    db.init_app(app)

    # Ensure models are imported so Alembic sees metadata
    from settleup import models as _models  # noqa: F401

    migrate.init_app(app, db)
    jwt.init_app(app)
    limiter.init_app(app)

    global redis_client
    redis_url = app.config.get("REDIS_URL")
    if not redis_url:
        redis_client = None
        app.extensions.pop("redis_client", None)
    else:
        redis_client = redis.Redis.from_url(redis_url)
        try:
            redis_client.ping()
        except RedisError as exc:
            raise RuntimeError(f"Failed to connect to Redis at {redis_url!r}") from exc
        app.extensions["redis_client"] = redis_client

    app.extensions[REFRESH_STORE_KEY] = build_refresh_token_store(app)


def get_redis() -> redis.Redis:
    """Return the initialized Redis client."""
    if redis_client is None:
        raise RuntimeError("Redis client is not initialized. Call init_app() first.")
    return redis_client


def build_refresh_token_store(app: Flask) -> RefreshTokenStore:
    """Build the refresh-token store selected by ``REFRESH_TOKEN_BACKEND``.

    :param app: Application whose configuration selects the backend.
    :type app: flask.Flask
    :returns: Store instance shared by every request of this process.
    :rtype: RefreshTokenStore
    :raises RuntimeError: When the backend is unknown or misconfigured.
    """
    backend = str(app.config.get("REFRESH_TOKEN_BACKEND", "sql")).strip().lower()

    if backend == "sql":
        from settleup.infra.sql.sql_refresh_token_store import SQLAlchemyRefreshTokenStore

        return SQLAlchemyRefreshTokenStore()

    if backend == "redis":
        from settleup.infra.redis.redis_refresh_token_store import RedisRefreshTokenStore

        if redis_client is None:
            raise RuntimeError("REFRESH_TOKEN_BACKEND='redis' requires REDIS_URL.")
        return RedisRefreshTokenStore(r=redis_client)

    if backend == "memory":
        from settleup.services._shared.ports import InMemoryRefreshTokenStore

        return InMemoryRefreshTokenStore()

    raise RuntimeError(f"Unknown REFRESH_TOKEN_BACKEND {backend!r}.")


def get_refresh_token_store(app: Flask) -> RefreshTokenStore:
    """Return the refresh-token store built for ``app`` at start-up."""
    store = app.extensions.get(REFRESH_STORE_KEY)
    if store is None:
        raise RuntimeError("Refresh token store is not initialized. Call init_app() first.")
    return store
