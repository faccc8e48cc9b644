"""
Canvas Models for Canvas Ledger
===============================

Models for canvas records, read-only canvas views and pixel writes.
"""

from enum import Enum
from typing import List
from pydantic import BaseModel, ConfigDict, Field


# One byte per pixel; unset pixels read back as this value
DEFAULT_COLOR = 255
MAX_COLOR = 255


class CanvasStatus(str, Enum):
    """Lifecycle status of a canvas. Transitions only move forward."""
    OPEN = "Open"
    COMPLETE = "Complete"
    CLAIMED = "Claimed"


class CanvasRecord(BaseModel):
    """Stored state of a canvas. Only the ledger mutates it."""
    id: int = Field(ge=1)
    width: int = Field(ge=1)
    height: int = Field(ge=1)
    created_at_tick: int = Field(ge=0)
    max_duration_ticks: int = Field(ge=1)
    status: CanvasStatus = CanvasStatus.OPEN
    last_write_tick: int = Field(ge=0)
    creator: str
    artwork_ref: str = ""

    @property
    def end_tick(self) -> int:
        """First tick at which the canvas no longer accepts writes."""
        return self.created_at_tick + self.max_duration_ticks

    def contains(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def to_view(self) -> "CanvasView":
        return CanvasView(**self.model_dump())


class CanvasView(BaseModel):
    """Immutable snapshot of a canvas handed to callers."""
    model_config = ConfigDict(frozen=True)

    id: int
    width: int
    height: int
    created_at_tick: int
    max_duration_ticks: int
    status: CanvasStatus
    last_write_tick: int
    creator: str
    artwork_ref: str

    @property
    def is_complete(self) -> bool:
        return self.status != CanvasStatus.OPEN

    @property
    def is_claimed(self) -> bool:
        return self.status == CanvasStatus.CLAIMED


class PixelWrite(BaseModel):
    """An explicitly stored pixel."""
    model_config = ConfigDict(frozen=True)

    x: int
    y: int
    color: int


class CanvasPixels(BaseModel):
    """Sparse pixel listing for renderers."""
    canvas_id: int
    width: int
    height: int
    default_color: int = DEFAULT_COLOR
    pixels: List[PixelWrite] = Field(default_factory=list)
