"""
Canvas Routes
=============

API routes for creating canvases, painting pixels and claiming.
The caller identity is taken from the X-Caller header.
"""

from typing import List

from fastapi import APIRouter, Header
from pydantic import BaseModel

from ..canvas.errors import LedgerError
from ..models.canvas_models import CanvasPixels, CanvasView
from .common import CALLER_HEADER, ledger_http_error, push_events, require_ledger

router = APIRouter(prefix="/api/canvas", tags=["canvas"])

# Injected by server
ledger = None
indexer_client = None


class CreateCanvasRequest(BaseModel):
    """Request to create a canvas."""
    width: int
    height: int
    max_duration_ticks: int


class CreateCanvasResponse(BaseModel):
    canvas_id: int
    message: str


class PixelRequest(BaseModel):
    """Request to color a pixel."""
    color: int


class PixelResponse(BaseModel):
    canvas_id: int
    x: int
    y: int
    color: int


class ClaimRequest(BaseModel):
    """Request to claim a finished canvas."""
    artwork_ref: str


class ClaimResponse(BaseModel):
    canvas_id: int
    token_id: int
    holder: str
    message: str


@router.post("")
async def create_canvas(
    request: CreateCanvasRequest,
    caller: str = Header(..., alias=CALLER_HEADER),
) -> CreateCanvasResponse:
    """Create a new canvas owned by the caller."""
    current = require_ledger(ledger)
    try:
        canvas_id = current.create_canvas(
            request.width, request.height, request.max_duration_ticks, caller
        )
    except LedgerError as e:
        raise ledger_http_error(e)

    await push_events(current, indexer_client)
    return CreateCanvasResponse(canvas_id=canvas_id, message="Canvas created")


@router.get("")
async def list_canvases() -> List[CanvasView]:
    """List every canvas with its current status."""
    return require_ledger(ledger).list_canvases()


@router.get("/{canvas_id}")
async def get_canvas(canvas_id: int) -> CanvasView:
    """Get canvas configuration and status."""
    try:
        return require_ledger(ledger).get_canvas(canvas_id)
    except LedgerError as e:
        raise ledger_http_error(e)


@router.get("/{canvas_id}/pixels")
async def get_pixels(canvas_id: int) -> CanvasPixels:
    """Get every explicitly colored pixel of a canvas."""
    try:
        return require_ledger(ledger).get_pixels(canvas_id)
    except LedgerError as e:
        raise ledger_http_error(e)


@router.get("/{canvas_id}/pixels/{x}/{y}")
async def get_pixel(canvas_id: int, x: int, y: int) -> PixelResponse:
    """Get the color of one pixel."""
    try:
        color = require_ledger(ledger).get_pixel(canvas_id, x, y)
    except LedgerError as e:
        raise ledger_http_error(e)
    return PixelResponse(canvas_id=canvas_id, x=x, y=y, color=color)


@router.put("/{canvas_id}/pixels/{x}/{y}")
async def set_pixel(
    canvas_id: int,
    x: int,
    y: int,
    request: PixelRequest,
    caller: str = Header(..., alias=CALLER_HEADER),
) -> PixelResponse:
    """Color one pixel of an open canvas."""
    current = require_ledger(ledger)
    try:
        current.set_pixel(canvas_id, x, y, request.color, caller)
    except LedgerError as e:
        raise ledger_http_error(e)

    await push_events(current, indexer_client)
    return PixelResponse(canvas_id=canvas_id, x=x, y=y, color=request.color)


@router.post("/{canvas_id}/claim")
async def claim_canvas(
    canvas_id: int,
    request: ClaimRequest,
    caller: str = Header(..., alias=CALLER_HEADER),
) -> ClaimResponse:
    """Claim a finished canvas and mint its token to the creator."""
    current = require_ledger(ledger)
    try:
        record = current.claim(canvas_id, request.artwork_ref, caller)
    except LedgerError as e:
        raise ledger_http_error(e)

    await push_events(current, indexer_client)
    return ClaimResponse(
        canvas_id=canvas_id,
        token_id=record.token_id,
        holder=record.holder,
        message="Canvas claimed",
    )
