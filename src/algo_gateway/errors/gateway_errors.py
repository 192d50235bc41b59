"""GatewayError — base exception class for all algo-gateway errors."""

from __future__ import annotations


class GatewayError(Exception):
    """Base error for all gateway operations.

    Attributes:
        message: Human-readable error description.
        status_code: Suggested HTTP status code.
        code: Machine-readable error code string.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int = 500,
        code: str = "gateway-error",
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code


class InvalidKeyError(GatewayError):
    """A private key, secret or mnemonic could not be decoded."""

    def __init__(self, message: str = "invalid private key or mnemonic") -> None:
        super().__init__(message, status_code=400, code="invalid-key")


class InvalidTransactionError(GatewayError):
    """A transaction request is missing fields or carries bad values."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=400, code="invalid-transaction")
