"""
Configuration for Canvas Ledger
===============================

All settings come from environment variables.
"""

import os
from pathlib import Path
from typing import List, Optional

from .canvas.snapshot_store import SnapshotStore
from .canvas.ticks import BlockTicks, ManualTicks, TickSource

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# "block" derives ticks from wall-clock time, "manual" only moves via the API
TICK_MODE = os.getenv("TICK_MODE", "block").lower()
BLOCK_TIME_SECONDS = float(os.getenv("BLOCK_TIME_SECONDS", "2.0"))
GENESIS_TIMESTAMP = os.getenv("GENESIS_TIMESTAMP")

# Unset keeps the ledger in memory only
SNAPSHOT_DIR = os.getenv("SNAPSHOT_DIR")

# Unset disables pushing events to an external indexer
INDEXER_URL = os.getenv("INDEXER_URL")
INDEXER_TIMEOUT = float(os.getenv("INDEXER_TIMEOUT", "10.0"))

# Observations kept in memory for the /api/events feed; 0 keeps all of them
EVENT_RETENTION = int(os.getenv("EVENT_RETENTION", "100000"))

CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")


def cors_origins(value: Optional[str] = None) -> List[str]:
    raw = CORS_ORIGINS if value is None else value
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


def event_retention(value: Optional[int] = None) -> Optional[int]:
    limit = EVENT_RETENTION if value is None else value
    return limit if limit > 0 else None


def build_tick_source(mode: Optional[str] = None) -> TickSource:
    """Tick source for the configured mode."""
    mode = (mode or TICK_MODE).lower()
    if mode == "manual":
        return ManualTicks()
    if mode == "block":
        genesis = float(GENESIS_TIMESTAMP) if GENESIS_TIMESTAMP else None
        return BlockTicks(block_time_seconds=BLOCK_TIME_SECONDS, genesis=genesis)
    raise ValueError(f"Unknown TICK_MODE: {mode!r} (expected 'block' or 'manual')")


def build_snapshot_store(snapshot_dir: Optional[str] = None) -> Optional[SnapshotStore]:
    directory = snapshot_dir if snapshot_dir is not None else SNAPSHOT_DIR
    if not directory:
        return None
    return SnapshotStore(Path(directory))
