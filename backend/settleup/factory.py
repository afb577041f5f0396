"""Application factory wiring Flask extensions and blueprints."""

from __future__ import annotations

from flask import Flask

from settleup.core.config import BaseConfig, get_config, validate_secrets
from settleup.core.logger import configure_logging, init_app as init_logging


def create_app(
    config: str | type[BaseConfig] | object | None = None,
    *,
    instance_relative_config: bool = True,
    instance_config_filename: str = "config.py",
) -> Flask:
    """Build and configure the Flask application.

    Parameters
    ----------
    config:
        Config class, object or import path; defaults to the class selected by
        ``APP_ENV``.
    instance_relative_config:
        Load overrides from the instance folder when ``True``.
    instance_config_filename:
        Instance file holding local overrides (optional).
    """
    app = Flask(__name__, instance_relative_config=instance_relative_config)

    app.config.from_object(get_config() if config is None else config)
    if instance_relative_config and instance_config_filename:
        app.config.from_pyfile(instance_config_filename, silent=True)
    validate_secrets(app.config)

    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    from settleup.core import proxy

    proxy.init_app(app)

    from settleup.core import extensions

    extensions.init_app(app)

    init_logging(app)

    from settleup.core import cors

    cors.init_app(app)

    from settleup.core import jwt as jwt_callbacks

    jwt_callbacks.init_app(app)

    from settleup.api import init_app as init_api

    init_api(app)

    from settleup.core import errors

    errors.init_app(app)

    from settleup import cli as app_cli

    app_cli.init_app(app)

    return app
