"""Node, broadcast, query and KMS errors."""

from __future__ import annotations

from algo_gateway.errors.gateway_errors import GatewayError

# Error code shared by broadcast and query failures surfaced to API callers
ALGO_ERROR_CODE = "algo.error"


class NodeError(GatewayError):
    """Error from an algod or indexer node."""

    def __init__(
        self, message: str, *, status_code: int = 502, code: str = "node-error"
    ) -> None:
        super().__init__(message, status_code=status_code, code=code)


class SubmissionFailed(NodeError):
    """The node rejected the raw transaction or could not be reached."""

    def __init__(self, message: str, *, status_code: int = 502) -> None:
        super().__init__(message, status_code=status_code, code="submission-failed")


class BroadcastFailed(GatewayError):
    """A submitted transaction was not finalized."""

    def __init__(self, message: str = "Failed Algo Transaction Signing") -> None:
        super().__init__(message, status_code=500, code=ALGO_ERROR_CODE)


class ConfirmationNotReached(BroadcastFailed):
    """Polling ended without the node reporting a confirmed round.

    Attributes:
        tx_id: The provisional transaction id returned on submission.
    """

    def __init__(self, tx_id: str, message: str = "Failed Algo Transaction Signing") -> None:
        super().__init__(message)
        self.tx_id = tx_id


class QueryFailed(GatewayError):
    """A read-only lookup against algod or the indexer failed."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=500, code=ALGO_ERROR_CODE)


class KMSError(GatewayError):
    """Error from the key-management subsystem."""

    def __init__(self, message: str, *, status_code: int = 502) -> None:
        super().__init__(message, status_code=status_code, code="kms-error")
