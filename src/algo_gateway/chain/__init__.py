"""Chain access — algod + indexer clients, endpoint resolution, normalization."""

from algo_gateway.chain.algod.client import AlgodClient
from algo_gateway.chain.indexer.client import IndexerClient
from algo_gateway.chain.models import (
    MICRO_UNITS,
    BroadcastOutcome,
    ConfirmationResult,
    NodeRole,
    OutcomeKind,
    SignedTransactionPayload,
    StoredTransaction,
)
from algo_gateway.chain.resolver import ConfiguredEndpointResolver, EndpointResolver

__all__ = [
    "MICRO_UNITS",
    "AlgodClient",
    "BroadcastOutcome",
    "ConfiguredEndpointResolver",
    "ConfirmationResult",
    "EndpointResolver",
    "IndexerClient",
    "NodeRole",
    "OutcomeKind",
    "SignedTransactionPayload",
    "StoredTransaction",
]
