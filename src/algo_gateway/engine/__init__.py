"""Engine — broadcast-and-confirm protocol and the gateway service."""

from algo_gateway.engine.broadcast import CONFIRMATION_ATTEMPTS, BroadcastEngine
from algo_gateway.engine.service import AlgoService, ProxyRequest

__all__ = ["CONFIRMATION_ATTEMPTS", "AlgoService", "BroadcastEngine", "ProxyRequest"]
