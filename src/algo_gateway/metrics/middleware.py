"""Prometheus HTTP request metrics middleware.

Records ``gateway_http_requests_total`` and
``gateway_http_request_duration_seconds``. Requests are labelled by the
matched route template, never the raw URL: node proxy paths are arbitrary
and would explode label cardinality.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

from prometheus_client import Counter, Histogram
from starlette.middleware.base import BaseHTTPMiddleware

if TYPE_CHECKING:
    from collections.abc import Callable

    from prometheus_client import CollectorRegistry
    from starlette.requests import Request
    from starlette.responses import Response

_UNMATCHED = "unmatched"
_SKIPPED_PATHS = frozenset({"/metrics", "/health"})


def route_template(request: Request) -> str:
    """Return the route path template the request matched."""
    route = request.scope.get("route")
    return getattr(route, "path", _UNMATCHED)


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Starlette middleware counting and timing gateway requests."""

    def __init__(self, app: object, *, registry: CollectorRegistry) -> None:
        super().__init__(app)  # type: ignore[arg-type]
        self._requests = Counter(
            "gateway_http_requests",
            "HTTP requests handled by the gateway",
            ("method", "route", "status_code"),
            registry=registry,
        )
        self._latency = Histogram(
            "gateway_http_request_duration_seconds",
            "HTTP request latency in seconds",
            ("method", "route"),
            registry=registry,
        )

    async def dispatch(self, request: Request, call_next: Callable) -> Response:  # type: ignore[type-arg]
        if request.url.path in _SKIPPED_PATHS:
            return await call_next(request)

        start = time.monotonic()
        response: Response = await call_next(request)
        elapsed = time.monotonic() - start

        # The route is only known once routing has run inside call_next
        route = route_template(request)
        self._requests.labels(request.method, route, str(response.status_code)).inc()
        self._latency.labels(request.method, route).observe(elapsed)
        return response
