"""V3 REST API routes.

Combines all sub-routers under the ``/v3`` prefix.
"""

from fastapi import APIRouter

from algo_gateway.api.v3.algorand import router as algorand_router

v3_router = APIRouter(prefix="/v3")

v3_router.include_router(algorand_router)

__all__ = ["v3_router"]
