"""
Event Models for Canvas Ledger
==============================

Observations emitted by the ledger for indexers and renderers.
Each event carries a global sequence number assigned by the event log.
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class EventType(str, Enum):
    """Kinds of ledger observations."""
    CANVAS_CREATED = "CanvasCreated"
    PIXEL_COLORED = "PixelColored"
    CANVAS_CLAIMED = "CanvasClaimed"
    TRANSFER = "Transfer"
    APPROVAL = "Approval"
    APPROVAL_FOR_ALL = "ApprovalForAll"


class LedgerEvent(BaseModel):
    """Fields shared by every observation."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    sequence: int = 0
    tick: int = 0
    # None for observations that span canvases
    canvas_id: Optional[int] = Field(default=None, alias="canvasId")

    def with_sequence(self, sequence: int) -> "LedgerEvent":
        return self.model_copy(update={"sequence": sequence})


class CanvasCreated(LedgerEvent):
    event: EventType = EventType.CANVAS_CREATED
    creator: str
    width: int
    height: int
    start_tick: int = Field(alias="startTick")
    max_duration_ticks: int = Field(alias="maxDurationTicks")


class PixelColored(LedgerEvent):
    event: EventType = EventType.PIXEL_COLORED
    editor: str
    x: int
    y: int
    color: int


class CanvasClaimed(LedgerEvent):
    event: EventType = EventType.CANVAS_CLAIMED
    creator: str


class Transfer(LedgerEvent):
    """Token movement. Mint has an empty sender, burn an empty receiver."""
    event: EventType = EventType.TRANSFER
    sender: str = Field(alias="from")
    receiver: str = Field(alias="to")
    token_id: int = Field(alias="tokenId")


class Approval(LedgerEvent):
    event: EventType = EventType.APPROVAL
    owner: str
    approved: str
    token_id: int = Field(alias="tokenId")


class ApprovalForAll(LedgerEvent):
    event: EventType = EventType.APPROVAL_FOR_ALL
    owner: str
    operator: str
    approved: bool


def event_payload(event: LedgerEvent) -> dict:
    """JSON-ready dict with the camelCase keys external consumers expect."""
    return event.model_dump(mode="json", by_alias=True)


def find_event_type(name: str) -> Optional[EventType]:
    try:
        return EventType(name)
    except ValueError:
        return None
