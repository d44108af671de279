"""Application factory with secure response defaults."""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI

from .errors import register_error_handlers
from .observability import ObservabilitySettings, configure_observability


def add_security_headers(app: FastAPI) -> None:
    @app.middleware("http")
    async def _security_headers(request, call_next):
        response = await call_next(request)
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        # Maze pages carry no scripts or styles.
        response.headers.setdefault("Content-Security-Policy", "default-src 'none'")
        response.headers.setdefault("X-Robots-Tag", "noindex, nofollow")
        return response


def create_app(
    *,
    observability_settings: ObservabilitySettings | None = None,
    **kwargs: Any,
) -> FastAPI:
    kwargs.setdefault("docs_url", None)
    kwargs.setdefault("redoc_url", None)
    kwargs.setdefault("openapi_url", None)
    app = FastAPI(**kwargs)
    add_security_headers(app)
    configure_observability(app, settings=observability_settings)
    register_error_handlers(app)
    return app
