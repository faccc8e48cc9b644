"""
Pixel Store
===========

Sparse per-canvas color storage. Only explicit writes are kept, so memory
follows the number of edits rather than the canvas area.

Bounds, lifecycle and color checks belong to the ledger; the store only
records and reads.
"""

from typing import Dict, Iterable, List, Optional, Tuple

from ..models.canvas_models import DEFAULT_COLOR, PixelWrite


class PixelStore:
    """Two-level map: canvas_id -> {(x, y) -> color}."""

    def __init__(self, default_color: int = DEFAULT_COLOR):
        self.default_color = default_color
        self._pixels: Dict[int, Dict[Tuple[int, int], int]] = {}

    def add_canvas(self, canvas_id: int) -> None:
        self._pixels.setdefault(canvas_id, {})

    def drop_canvas(self, canvas_id: int) -> None:
        self._pixels.pop(canvas_id, None)

    def set(self, canvas_id: int, x: int, y: int, color: int) -> Optional[int]:
        """Store a color and return the one it replaced, None if the pixel was unset."""
        grid = self._pixels.setdefault(canvas_id, {})
        previous = grid.get((x, y))
        grid[(x, y)] = color
        return previous

    def unset(self, canvas_id: int, x: int, y: int) -> None:
        self._pixels.get(canvas_id, {}).pop((x, y), None)

    def get(self, canvas_id: int, x: int, y: int) -> int:
        return self._pixels.get(canvas_id, {}).get((x, y), self.default_color)

    def writes(self, canvas_id: int) -> List[PixelWrite]:
        """Explicit writes in row-major order."""
        grid = self._pixels.get(canvas_id, {})
        return [
            PixelWrite(x=x, y=y, color=grid[(x, y)])
            for (x, y) in sorted(grid, key=lambda key: (key[1], key[0]))
        ]

    def load(self, canvas_id: int, writes: Iterable[PixelWrite]) -> None:
        self._pixels[canvas_id] = {(w.x, w.y): w.color for w in writes}
