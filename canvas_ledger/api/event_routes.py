"""
Event Routes
============

Observation feed for indexers, plus the current tick.
"""

from typing import Optional

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel

from ..canvas.ticks import ManualTicks
from ..models.event_models import event_payload, find_event_type
from .common import require_ledger

router = APIRouter(prefix="/api", tags=["events"])

# Injected by server
ledger = None


class AdvanceRequest(BaseModel):
    ticks: int = 1


@router.get("/events")
async def list_events(
    since: int = Query(0, ge=0),
    canvas_id: Optional[int] = None,
    event_type: Optional[str] = None,
    limit: Optional[int] = Query(None, ge=1),
):
    """
    Events after the given sequence number, oldest first.

    Only events from first_sequence on are still held; a reader that fell
    further behind gets the retained ones.
    """
    current = require_ledger(ledger)
    kind = None
    if event_type is not None:
        kind = find_event_type(event_type)
        if kind is None:
            raise HTTPException(status_code=400, detail=f"Unknown event type: {event_type}")

    events = current.events.since(since, canvas_id=canvas_id, event_type=kind, limit=limit)
    return {
        "events": [event_payload(e) for e in events],
        "first_sequence": current.events.first_sequence,
        "last_sequence": current.events.last_sequence,
    }


@router.get("/tick")
async def get_tick():
    """Tick the ledger currently evaluates completion against."""
    return {"tick": require_ledger(ledger).current_tick}


@router.post("/tick/advance")
async def advance_tick(request: AdvanceRequest):
    """Move a manual tick source forward. Only available in manual tick mode."""
    current = require_ledger(ledger)
    if not isinstance(current.ticks, ManualTicks):
        raise HTTPException(status_code=409, detail="Tick source is not manual")
    try:
        current.ticks.advance(request.ticks)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"tick": current.current_tick}
