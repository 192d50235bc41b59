"""Indexer — historical block and transaction lookups."""

from algo_gateway.chain.indexer.client import IndexerClient

__all__ = ["IndexerClient"]
