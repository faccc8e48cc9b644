"""
Shared test fixtures for the canvas-ledger test suite.

Local fixtures in individual test files override these (pytest convention).
"""

import pytest

from canvas_ledger.canvas.ledger import CanvasLedger
from canvas_ledger.canvas.ticks import ManualTicks


CREATOR = "0xCreator"
PAINTER = "0xPainter"
STRANGER = "0xStranger"


# ---------------------------------------------------------------------------
# Time
# ---------------------------------------------------------------------------

@pytest.fixture
def ticks():
    """Logical clock starting at tick 0."""
    return ManualTicks(start=0)


# ---------------------------------------------------------------------------
# Ledger
# ---------------------------------------------------------------------------

@pytest.fixture
def ledger(ticks):
    """In-memory ledger driven by the manual clock."""
    return CanvasLedger(ticks=ticks)


@pytest.fixture
def canvas_id(ledger):
    """A 10x10 canvas open for 5 ticks, created at tick 0."""
    return ledger.create_canvas(10, 10, 5, CREATOR)


@pytest.fixture
def complete_canvas_id(ledger, ticks, canvas_id):
    """The 10x10 canvas after its window elapsed, with one pixel painted."""
    ledger.set_pixel(canvas_id, 3, 3, 42, PAINTER)
    ticks.set(10)
    return canvas_id


@pytest.fixture
def claimed_canvas_id(ledger, complete_canvas_id):
    ledger.claim(complete_canvas_id, "Qm123", CREATOR)
    return complete_canvas_id
