"""Pytest fixtures building the application on an in-memory SQLite database.

Tables are created and dropped around every test so data changes never leak
between cases, including the rows committed by the services' units of work.
"""

from __future__ import annotations

import os

import pytest
from settleup.core.config import TestingConfig
from settleup.core.extensions import db as _db  # Flask-SQLAlchemy instance
from settleup.factory import create_app  # application factory under test


class TestConfig(TestingConfig):
    """Testing configuration for creating the Flask app.

    Notes
    -----
    - Uses an in-memory SQLite database for speed.
    - Keeps refresh tokens in SQL so they share the per-test tables.
    - Avoids hitting external services (no Redis, no rate-limit storage).
    """

    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    JWT_SECRET_KEY = "test-jwt-secret-key-with-enough-entropy-0123456789"
    REFRESH_TOKEN_BACKEND = "sql"
    REDIS_URL = None
    RATELIMIT_ENABLED = False
    LOG_LEVEL = "INFO"


@pytest.fixture(scope="session")
def app():
    """Create a Flask application configured for testing.

    Returns
    -------
    flask.Flask
        Application instance with :class:`TestConfig` applied and logging
        noise reduced.
    """
    # Ensure env-based config does not leak into tests
    os.environ.pop("DATABASE_URL", None)
    os.environ.pop("REDIS_URL", None)
    app = create_app(TestConfig)
    app.logger.setLevel("WARNING")
    return app


@pytest.fixture()
def db(app):
    """Create every table for the duration of one test.

    Parameters
    ----------
    app: flask.Flask
        Application fixture ensuring the Flask context is available.

    Yields
    ------
    flask_sqlalchemy.SQLAlchemy
        Database extension bound to the testing application.
    """
    with app.app_context():
        _db.create_all()
        yield _db
        _db.session.remove()
        _db.drop_all()


@pytest.fixture()
def session(db):
    """Provide the Flask-SQLAlchemy scoped session used by the application code."""
    return db.session


@pytest.fixture()
def client(app, db):
    """Return a Flask test client sharing the per-test database."""
    return app.test_client()


@pytest.fixture(scope="session")
def faker():
    """Provide a :class:`faker.Faker` instance seeded for deterministic tests."""
    from faker import Faker

    fk = Faker()
    Faker.seed(1337)
    return fk


@pytest.fixture()
def freeze_time():
    """Return a factory that freezes time at ``target`` (default 2024-01-01)."""
    from freezegun import freeze_time as _freeze_time

    def _factory(target: str | None = None):
        return _freeze_time(target or "2024-01-01 12:00:00")

    return _factory


# -- Hook up Factory Boy to pytest SQLAlchemy session --------------------------
@pytest.fixture(autouse=True)
def _factories_session(request):
    """Wire Factory Boy's session helper to the per-test session, when requested."""
    from tests.factories import SQLAlchemySession

    if "session" not in request.fixturenames:
        SQLAlchemySession.set(None)
        yield
        return
    SQLAlchemySession.set(request.getfixturevalue("session"))
    yield
    SQLAlchemySession.set(None)
