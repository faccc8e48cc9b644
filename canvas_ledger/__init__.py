"""Canvas Ledger: collaborative pixel canvases minted as non-fungible tokens."""

from .canvas.ledger import CanvasLedger
from .canvas.ticks import BlockTicks, ManualTicks, TickSource
from .models.canvas_models import DEFAULT_COLOR, CanvasStatus, CanvasView

__all__ = [
    "CanvasLedger",
    "BlockTicks",
    "ManualTicks",
    "TickSource",
    "DEFAULT_COLOR",
    "CanvasStatus",
    "CanvasView",
]
