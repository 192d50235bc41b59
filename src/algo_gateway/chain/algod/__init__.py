"""Algod — transaction submission and node status."""

from algo_gateway.chain.algod.client import AlgodClient

__all__ = ["AlgodClient"]
