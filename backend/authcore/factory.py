"""Application factory wiring Flask extensions and blueprints."""

from __future__ import annotations

import os

from flask import Flask

from authcore.core.config import BaseConfig, get_config, validate_security_settings
from authcore.core.logger import configure_logging, init_app as init_logging


def create_app(
    config: str | type[BaseConfig] | object | None = None,
    *,
    instance_relative_config: bool = True,
    instance_config_filename: str = "config.py",
) -> Flask:
    """Build and configure the Flask application.

    :raises ConfigurationError: When security settings are missing or unsafe;
        the process must not start serving.
    """
    app = Flask(__name__, instance_relative_config=instance_relative_config)

    app.config.from_object(get_config() if config is None else config)
    if instance_relative_config and instance_config_filename:
        app.config.from_pyfile(instance_config_filename, silent=True)

    validate_security_settings(app.config)

    configure_logging(
        app.config.get("LOG_LEVEL", "INFO"),
        environment=os.getenv("APP_ENV", "development"),
        security_level=app.config.get("SECURITY_LOG_LEVEL"),
    )

    from authcore.core import proxy

    proxy.init_app(app)

    from authcore.core import extensions

    extensions.init_app(app)

    init_logging(app)

    from authcore.api import init_app as init_api

    init_api(app)

    from authcore.core import errors

    errors.init_app(app)

    from authcore import cli as app_cli

    app_cli.init_app(app)

    return app
