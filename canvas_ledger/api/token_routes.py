"""
Token Routes
============

API routes for minted canvas tokens: metadata, ownership, approvals,
operators, transfer and burn.
"""

from fastapi import APIRouter, Header, Response
from pydantic import BaseModel

from ..canvas.errors import LedgerError
from .common import CALLER_HEADER, ledger_http_error, push_events, require_ledger

router = APIRouter(prefix="/api/token", tags=["token"])

# Injected by server
ledger = None
indexer_client = None


class ApproveRequest(BaseModel):
    """Approve one identity for a token; empty string clears."""
    approved: str = ""


class OperatorRequest(BaseModel):
    """Grant or revoke an operator over all of the caller's tokens."""
    operator: str
    approved: bool = True


class TransferRequest(BaseModel):
    sender: str
    receiver: str


class OwnerResponse(BaseModel):
    token_id: int
    owner: str
    approved: str = ""


@router.get("/collection")
async def collection_info():
    """Name and symbol of the token collection."""
    current = require_ledger(ledger)
    return {"name": current.tokens.name, "symbol": current.tokens.symbol}


@router.get("/balance/{identity}")
async def balance_of(identity: str):
    """Number of tokens held by an identity."""
    try:
        balance = require_ledger(ledger).balance_of(identity)
    except LedgerError as e:
        raise ledger_http_error(e)
    return {"identity": identity, "balance": balance}


@router.get("/operators/{owner}/{operator}")
async def is_approved_for_all(owner: str, operator: str):
    approved = require_ledger(ledger).is_approved_for_all(owner, operator)
    return {"owner": owner, "operator": operator, "approved": approved}


@router.post("/operators")
async def set_approval_for_all(
    request: OperatorRequest,
    caller: str = Header(..., alias=CALLER_HEADER),
):
    current = require_ledger(ledger)
    try:
        current.set_approval_for_all(request.operator, request.approved, caller)
    except LedgerError as e:
        raise ledger_http_error(e)

    await push_events(current, indexer_client)
    return {"owner": caller, "operator": request.operator, "approved": request.approved}


@router.get("/{token_id}/metadata")
async def token_metadata(token_id: int) -> Response:
    """Metadata document of a minted canvas, byte for byte as stored."""
    try:
        document = require_ledger(ledger).token_metadata_json(token_id)
    except LedgerError as e:
        raise ledger_http_error(e)
    return Response(content=document, media_type="application/json")


@router.get("/{token_id}/uri")
async def token_uri(token_id: int):
    """Self-contained data URI of the metadata document."""
    try:
        uri = require_ledger(ledger).token_uri(token_id)
    except LedgerError as e:
        raise ledger_http_error(e)
    return {"token_id": token_id, "uri": uri}


@router.get("/{token_id}/owner")
async def owner_of(token_id: int) -> OwnerResponse:
    """Current holder and approved identity of a token."""
    current = require_ledger(ledger)
    try:
        owner = current.owner_of(token_id)
        approved = current.get_approved(token_id)
    except LedgerError as e:
        raise ledger_http_error(e)
    return OwnerResponse(token_id=token_id, owner=owner, approved=approved)


@router.post("/{token_id}/approve")
async def approve(
    token_id: int,
    request: ApproveRequest,
    caller: str = Header(..., alias=CALLER_HEADER),
) -> OwnerResponse:
    current = require_ledger(ledger)
    try:
        current.approve(token_id, request.approved, caller)
        owner = current.owner_of(token_id)
    except LedgerError as e:
        raise ledger_http_error(e)

    await push_events(current, indexer_client)
    return OwnerResponse(token_id=token_id, owner=owner, approved=request.approved)


@router.post("/{token_id}/transfer")
async def transfer(
    token_id: int,
    request: TransferRequest,
    caller: str = Header(..., alias=CALLER_HEADER),
) -> OwnerResponse:
    current = require_ledger(ledger)
    try:
        record = current.transfer(token_id, request.sender, request.receiver, caller)
    except LedgerError as e:
        raise ledger_http_error(e)

    await push_events(current, indexer_client)
    return OwnerResponse(token_id=token_id, owner=record.holder)


@router.post("/{token_id}/burn")
async def burn(
    token_id: int,
    caller: str = Header(..., alias=CALLER_HEADER),
):
    """Destroy a token. The canvas stays claimed."""
    current = require_ledger(ledger)
    try:
        current.burn(token_id, caller)
    except LedgerError as e:
        raise ledger_http_error(e)

    await push_events(current, indexer_client)
    return {"message": "Token burned", "token_id": token_id}
