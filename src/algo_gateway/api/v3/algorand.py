"""V3 Algorand endpoints.

Wallets, send/broadcast, balance, block and transaction queries, and the
raw node proxy under ``/v3/algorand``.
"""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, Path, Query, Request

from algo_gateway.api.dependencies import get_service
from algo_gateway.api.schemas import (
    AddressResponse,
    BalanceResponse,
    BroadcastRequest,
    ErrorResponse,
    PayTransactionsResponse,
    PrivateKeyRequest,
    SignatureIdResponse,
    TransactionHashResponse,
    WalletResponse,
)
from algo_gateway.chain.models import NodeRole
from algo_gateway.engine.service import AlgoService, ProxyRequest  # noqa: TC001
from algo_gateway.engine.transactions import AlgoTransaction  # noqa: TC001

router = APIRouter(
    prefix="/algorand",
    tags=["algorand"],
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)

ServiceDep = Annotated[AlgoService, Depends(get_service)]

_PROXY_METHODS = ["GET", "POST", "PUT", "DELETE", "PATCH"]


# ---------------------------------------------------------------------------
# Wallets
# ---------------------------------------------------------------------------


@router.get("/wallet", response_model=WalletResponse)
async def generate_wallet(
    service: ServiceDep,
    mnemonic: Annotated[str | None, Query()] = None,
) -> dict:
    wallet = await service.generate_wallet(mnemonic)
    return wallet.to_dict()


@router.post("/wallet/priv", response_model=AddressResponse)
async def generate_address(body: PrivateKeyRequest, service: ServiceDep) -> dict:
    return {"address": await service.generate_address(body.secret)}


# ---------------------------------------------------------------------------
# Sending
# ---------------------------------------------------------------------------


@router.post(
    "/transaction",
    response_model=TransactionHashResponse | SignatureIdResponse,
    response_model_exclude_none=True,
)
async def send_transaction(body: AlgoTransaction, service: ServiceDep) -> dict:
    """Sign and broadcast a payment, or queue it for KMS signing."""
    result = await service.send_transaction(body)
    return result.to_dict()


@router.post(
    "/broadcast", response_model=TransactionHashResponse, response_model_exclude_none=True
)
async def broadcast(body: BroadcastRequest, service: ServiceDep) -> dict:
    """Broadcast a signed transaction and wait for its confirmation.

    Returns ``{"txId": ...}``, or ``{"txId": ..., "failed": true}`` when the
    transaction confirmed but the KMS could not be updated.
    """
    outcome = await service.broadcast(body.tx_data, body.signature_id)
    return outcome.to_dict()


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


@router.get("/account/balance/{address}", response_model=BalanceResponse)
async def get_balance(address: str, service: ServiceDep) -> dict:
    """Get an account balance as a whole-ALGO decimal string."""
    return {"balance": await service.get_balance(address)}


@router.get("/block/current")
async def get_current_block(
    service: ServiceDep,
    testnet: Annotated[bool | None, Query()] = None,
) -> int:
    return await service.get_current_block(testnet)


@router.get("/block/{round_number}", response_model=dict[str, Any])
async def get_block(
    round_number: Annotated[int, Path(ge=0)],
    service: ServiceDep,
) -> dict[str, Any]:
    """Get a block by round. Fees and amounts are whole-ALGO decimal strings."""
    return await service.get_block(round_number)


@router.get("/transaction/{tx_id}", response_model=dict[str, Any])
async def get_transaction(tx_id: str, service: ServiceDep) -> dict[str, Any]:
    """Get a transaction by id. Fees and amounts are whole-ALGO decimal strings."""
    return await service.get_transaction(tx_id)


@router.get("/transactions/{from_time}/{to_time}", response_model=PayTransactionsResponse)
async def get_pay_transactions(
    from_time: str,
    to_time: str,
    service: ServiceDep,
    limit: Annotated[str | None, Query()] = None,
    next_token: Annotated[str | None, Query(alias="next")] = None,
    testnet: Annotated[bool | None, Query()] = None,
) -> dict[str, Any]:
    """List payments in a time window. Amounts are whole-ALGO decimal strings."""
    return await service.get_pay_transactions(from_time, to_time, limit, next_token, testnet)


# ---------------------------------------------------------------------------
# Node proxy
# ---------------------------------------------------------------------------


@router.api_route("/node/{node_type}/{key}/{path:path}", methods=_PROXY_METHODS)
async def node_method(
    node_type: NodeRole,
    key: str,
    path: str,
    request: Request,
    service: ServiceDep,
    body: Annotated[Any, Body()] = None,
) -> Any:
    """Forward the request to an algod or indexer node."""
    url = request.url.path
    if request.url.query:
        url = f"{url}?{request.url.query}"
    proxied = ProxyRequest(
        method=request.method,
        url=url,
        body=body,
        content_type=request.headers.get("content-type"),
    )
    return await service.node_method(proxied, key, node_type)
