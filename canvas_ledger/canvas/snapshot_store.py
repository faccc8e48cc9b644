"""
Snapshot Store
==============

JSON persistence for the ledger. One file per canvas, written after every
committed change to that canvas, a registry file holding the id counter, and
a file of operator approvals, which span canvases.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ..models.canvas_models import CanvasRecord, PixelWrite
from ..models.token_models import OwnershipRecord

logger = logging.getLogger(__name__)

REGISTRY_FILE = "registry.json"
OPERATORS_FILE = "operators.json"
CANVAS_FILE_PREFIX = "canvas_"


class CanvasSnapshot(BaseModel):
    """Everything persisted for one canvas."""
    canvas: CanvasRecord
    pixels: List[PixelWrite] = Field(default_factory=list)
    token: Optional[OwnershipRecord] = None
    approved: str = ""


class SnapshotStore:
    """Reads and writes ledger snapshots under a directory."""

    def __init__(self, snapshot_dir: Path):
        self.snapshot_dir = Path(snapshot_dir)
        self.snapshot_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"[SNAPSHOT] Initialized with snapshot_dir={self.snapshot_dir}")

    def _canvas_path(self, canvas_id: int) -> Path:
        return self.snapshot_dir / f"{CANVAS_FILE_PREFIX}{canvas_id}.json"

    def _write(self, path: Path, data: Dict[str, Any]) -> None:
        """Write to a temp file then rename, so readers never see half a file."""
        tmp_path = path.with_suffix(".tmp")
        with open(tmp_path, "w") as f:
            json.dump(data, f, indent=2)
            f.flush()
            os.fsync(f.fileno())
        tmp_path.replace(path)

    def save_canvas(self, snapshot: CanvasSnapshot) -> None:
        self._write(self._canvas_path(snapshot.canvas.id), snapshot.model_dump(mode="json"))

    def save_counter(self, next_canvas_id: int) -> None:
        self._write(self.snapshot_dir / REGISTRY_FILE, {"next_canvas_id": next_canvas_id})

    def load_counter(self) -> int:
        path = self.snapshot_dir / REGISTRY_FILE
        if not path.exists():
            return 1
        with open(path) as f:
            return int(json.load(f).get("next_canvas_id", 1))

    def save_operators(self, operators: Dict[str, List[str]]) -> None:
        self._write(self.snapshot_dir / OPERATORS_FILE, {"operators": operators})

    def load_operators(self) -> Dict[str, List[str]]:
        path = self.snapshot_dir / OPERATORS_FILE
        if not path.exists():
            return {}
        with open(path) as f:
            return {owner: list(ops) for owner, ops in json.load(f).get("operators", {}).items()}

    def load_canvases(self) -> List[CanvasSnapshot]:
        """All stored canvases ordered by id."""
        snapshots = []
        for path in self.snapshot_dir.glob(f"{CANVAS_FILE_PREFIX}*.json"):
            with open(path) as f:
                snapshots.append(CanvasSnapshot.model_validate(json.load(f)))
        snapshots.sort(key=lambda s: s.canvas.id)
        logger.info(f"[SNAPSHOT] Loaded {len(snapshots)} canvas snapshot(s)")
        return snapshots
