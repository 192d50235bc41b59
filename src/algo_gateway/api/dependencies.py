"""FastAPI dependency injection helpers.

Usage in a route::

    @router.get("/account/balance/{address}")
    async def get_balance(
        address: str,
        service: AlgoService = Depends(get_service),
    ) -> ...:
        ...
"""

from __future__ import annotations

from fastapi import Request

from algo_gateway.engine.service import AlgoService  # noqa: TC001
from algo_gateway.errors.gateway_errors import GatewayError


def get_service(request: Request) -> AlgoService:
    """Retrieve the service from ``app.state``.

    The service is stored on ``app.state.service`` during lifespan startup.

    Raises:
        GatewayError: 503 if the service is not initialized.
    """
    service: AlgoService | None = getattr(request.app.state, "service", None)
    if service is None:
        raise GatewayError("service not initialized", status_code=503, code="not-ready")
    return service
