"""
Canvas lifecycle rules.

Completion is never scheduled. It is derived from stored ticks every time a
canvas is touched, so these helpers must stay pure.
"""

from ..models.canvas_models import CanvasRecord, CanvasStatus


def is_complete(canvas: CanvasRecord, current_tick: int) -> bool:
    """True once the write window has elapsed. The boundary tick counts as elapsed."""
    return current_tick >= canvas.end_tick


def derived_status(canvas: CanvasRecord, current_tick: int) -> CanvasStatus:
    """Status the canvas has at current_tick, never earlier than its stored status."""
    if canvas.status == CanvasStatus.OPEN and is_complete(canvas, current_tick):
        return CanvasStatus.COMPLETE
    return canvas.status


def apply_completion(canvas: CanvasRecord, current_tick: int) -> bool:
    """
    Move an open canvas to Complete if its window has elapsed.

    Returns True when the stored status changed. A no-op for canvases that
    are already Complete or Claimed.
    """
    status = derived_status(canvas, current_tick)
    if status is canvas.status:
        return False
    canvas.status = status
    return True
