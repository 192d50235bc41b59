"""Error types for the Algorand gateway."""

from algo_gateway.errors.chain_errors import (
    BroadcastFailed,
    ConfirmationNotReached,
    KMSError,
    NodeError,
    QueryFailed,
    SubmissionFailed,
)
from algo_gateway.errors.gateway_errors import (
    GatewayError,
    InvalidKeyError,
    InvalidTransactionError,
)

__all__ = [
    "BroadcastFailed",
    "ConfirmationNotReached",
    "GatewayError",
    "InvalidKeyError",
    "InvalidTransactionError",
    "KMSError",
    "NodeError",
    "QueryFailed",
    "SubmissionFailed",
]
