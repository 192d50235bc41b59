"""FastAPI application factory."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest
from starlette.responses import Response

from algo_gateway import __version__
from algo_gateway.api.v3 import v3_router
from algo_gateway.config.settings import AppConfig
from algo_gateway.engine.service import AlgoService
from algo_gateway.errors.gateway_errors import GatewayError
from algo_gateway.metrics.collector import GatewayMetrics
from algo_gateway.metrics.middleware import PrometheusMiddleware

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup / shutdown lifecycle hooks.

    Builds the service on startup unless one was injected into
    :func:`create_app`, and closes it on exit.
    """
    service: AlgoService | None = getattr(app.state, "service", None)
    if service is None:
        service = AlgoService(app.state.config, metrics=app.state.metrics)
        app.state.service = service

    try:
        await service.initialize()
        logger.info("Algorand gateway initialized")
        yield
    finally:
        await service.close()
        logger.info("Algorand gateway shut down")


def create_app(
    *,
    config: AppConfig | None = None,
    service: AlgoService | None = None,
) -> FastAPI:
    """Build and return the FastAPI application.

    Args:
        config: Optional AppConfig. If *None*, a default config is created
            from environment variables.
        service: Optional pre-built service (tests inject fakes here).
    """
    if config is None:
        config = AppConfig()

    app = FastAPI(
        title="algo-gateway",
        version=__version__,
        description="Algorand node gateway: wallets, broadcast, queries and node proxy",
        lifespan=_lifespan,
    )

    app.state.config = config
    app.state.metrics = GatewayMetrics()
    if service is not None:
        app.state.service = service

    # -- Error handlers --
    @app.exception_handler(GatewayError)
    async def _gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"code": exc.code, "message": exc.message},
        )

    @app.exception_handler(httpx.HTTPStatusError)
    async def _node_error_handler(request: Request, exc: httpx.HTTPStatusError) -> Response:
        # Proxied node errors are passed through as the node sent them
        upstream = exc.response
        return Response(
            content=upstream.content,
            status_code=upstream.status_code,
            media_type=upstream.headers.get("content-type"),
        )

    # -- Base routes --
    @app.get("/health", tags=["base"])
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/metrics", tags=["base"], include_in_schema=False)
    async def metrics_endpoint() -> Response:
        """Prometheus metrics endpoint."""
        return Response(
            content=generate_latest(app.state.metrics.registry),
            media_type="text/plain; version=0.0.4; charset=utf-8",
        )

    if config.metrics.enabled:
        app.add_middleware(PrometheusMiddleware, registry=app.state.metrics.registry)

    app.include_router(v3_router)

    return app
