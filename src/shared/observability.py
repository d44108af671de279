"""Logging, request correlation, metrics and health routes for the maze server.

The maze answers every path, so the operational routes live under their own
configurable prefix and are registered before the catch-all route.
"""
from __future__ import annotations

import json
import logging
import os
import time
import uuid
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse, PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST

from .metrics import REQUEST_LATENCY, get_metrics, record_request

HealthCallable = Callable[[], "HealthCheckResult"]


_request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)


def _now() -> float:
    return time.perf_counter()


@dataclass
class HealthCheckResult:
    """Return value for health check callables."""

    status: str
    detail: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def healthy(cls, detail: Optional[dict[str, Any]] = None) -> "HealthCheckResult":
        return cls(status="ok", detail=detail or {})

    @classmethod
    def unhealthy(cls, detail: Optional[dict[str, Any]] = None) -> "HealthCheckResult":
        return cls(status="error", detail=detail or {})


@dataclass
class HealthCheck:
    name: str
    check: HealthCallable
    critical: bool = True


class JsonFormatter(logging.Formatter):
    """Emit JSON log records with request correlation."""

    def __init__(self, service_name: str) -> None:
        super().__init__()
        self._service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.now(tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "service": self._service_name,
            "message": record.getMessage(),
        }
        request_id = getattr(record, "request_id", None) or get_request_id()
        if request_id:
            payload["request_id"] = request_id
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        for key, value in getattr(record, "extra_fields", {}).items():
            payload[key] = value
        return json.dumps(payload, default=str)


class RequestContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id()
        return True


@dataclass
class ObservabilitySettings:
    service_name: str | None = None
    metrics_path: str = "/_maze/metrics"
    health_path: str = "/_maze/health"
    request_id_header: str = "X-Request-ID"
    log_level: str | None = None


class ObservabilityState:
    def __init__(self, settings: ObservabilitySettings) -> None:
        self.settings = settings
        self.health_checks: list[HealthCheck] = []

    def add_health_check(self, health_check: HealthCheck) -> None:
        self.health_checks.append(health_check)


def _get_state(app: FastAPI) -> ObservabilityState:
    state = getattr(app.state, "observability", None)
    if state is None:
        raise RuntimeError("Observability not configured for this app")
    return state


def get_request_id() -> str | None:
    return _request_id_ctx.get()


def configure_logging(settings: ObservabilitySettings) -> None:
    service_name = settings.service_name or "markov-maze"
    root_logger = logging.getLogger()
    level_name = (settings.log_level or os.getenv("LOG_LEVEL", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)
    if not root_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(JsonFormatter(service_name))
        handler.addFilter(RequestContextFilter())
        root_logger.addHandler(handler)
    else:
        for handler in root_logger.handlers:
            if isinstance(getattr(handler, "formatter", None), JsonFormatter):
                continue
            handler.addFilter(RequestContextFilter())
            handler.setFormatter(JsonFormatter(service_name))
    root_logger.setLevel(level)


def _determine_status(results: list[tuple[HealthCheck, HealthCheckResult]]) -> str:
    overall = "ok"
    for check, result in results:
        if result.status == "error" and check.critical:
            return "error"
        if result.status != "ok" and overall == "ok":
            overall = "degraded"
    return overall


def _add_metrics_route(app: FastAPI, settings: ObservabilitySettings) -> None:
    @app.get(settings.metrics_path, include_in_schema=False)
    async def metrics_endpoint() -> PlainTextResponse:
        return PlainTextResponse(get_metrics(), media_type=CONTENT_TYPE_LATEST)


def _add_health_route(app: FastAPI, settings: ObservabilitySettings) -> None:
    @app.get(settings.health_path, include_in_schema=False)
    async def health_endpoint() -> JSONResponse:
        state = _get_state(app)
        checks = state.health_checks or [
            HealthCheck(name="startup", check=lambda: HealthCheckResult.healthy())
        ]
        results: list[tuple[HealthCheck, HealthCheckResult]] = []
        for check in checks:
            try:
                result = check.check()
            except Exception as exc:
                logging.getLogger(__name__).exception(
                    "Health check '%s' failed", check.name
                )
                result = HealthCheckResult.unhealthy({"error": str(exc)})
            results.append((check, result))
        status = _determine_status(results)
        payload = {
            "status": status,
            "service": settings.service_name,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "checks": {
                check.name: {"status": result.status, "detail": result.detail}
                for check, result in results
            },
        }
        status_code = 200 if status == "ok" else 503
        return JSONResponse(payload, status_code=status_code)


def configure_observability(
    app: FastAPI, settings: ObservabilitySettings | None = None
) -> ObservabilitySettings:
    settings = settings or ObservabilitySettings()
    settings.service_name = settings.service_name or app.title or "markov-maze"
    configure_logging(settings)
    state = ObservabilityState(settings)
    app.state.observability = state

    _add_metrics_route(app, settings)
    _add_health_route(app, settings)

    logger = logging.getLogger(settings.service_name)

    @app.middleware("http")
    async def observability_middleware(request: Request, call_next):
        request_id = request.headers.get(settings.request_id_header) or str(
            uuid.uuid4()
        )
        endpoint = getattr(request.scope.get("route"), "path", request.url.path)
        start = _now()
        token_request = _request_id_ctx.set(request_id)
        status_code = 500
        response: Response | None = None
        try:
            response = await call_next(request)
            status_code = response.status_code
        except Exception:
            logger.exception(
                "Unhandled exception during request",
                extra={"extra_fields": {"path": endpoint, "method": request.method}},
            )
            raise
        finally:
            duration = _now() - start
            # Maze paths are unbounded; label them by route template only.
            route = getattr(request.scope.get("route"), "path", "unmatched")
            record_request(request.method, route, status_code)
            REQUEST_LATENCY.labels(method=request.method, endpoint=route).observe(
                duration
            )
            logger.debug(
                "Handled request",
                extra={
                    "extra_fields": {
                        "method": request.method,
                        "path": endpoint,
                        "status_code": status_code,
                        "duration_seconds": round(duration, 6),
                    }
                },
            )
            if response is not None:
                response.headers.setdefault(settings.request_id_header, request_id)
            _request_id_ctx.reset(token_request)
        return response

    return settings


def register_health_check(
    app: FastAPI,
    name: str,
    *,
    critical: bool = True,
) -> Callable[[HealthCallable], HealthCallable]:
    state = _get_state(app)

    def decorator(func: HealthCallable) -> HealthCallable:
        state.add_health_check(HealthCheck(name=name, check=func, critical=critical))
        return func

    return decorator
