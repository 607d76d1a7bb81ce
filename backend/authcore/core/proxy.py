"""WSGI proxy middleware configuration helper."""

from __future__ import annotations

from flask import Flask
from werkzeug.middleware.proxy_fix import ProxyFix


def init_app(app: Flask) -> None:
    """Trust one hop of ``X-Forwarded-For``/``-Proto`` when ``USE_PROXYFIX`` is set.

    Client addresses recorded in security events come from
    ``request.remote_addr``, so behind a reverse proxy this must be on for
    them to be meaningful.
    """
    if app.config.get("USE_PROXYFIX", True):
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1)  # type: ignore[method-assign]
