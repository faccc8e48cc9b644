"""
Tick sources.

The ledger does not keep time itself. A tick source reports the current
value of an external monotonic counter, such as a block height.
"""

import threading
import time
from typing import Optional


class TickSource:
    """Interface for anything that reports the current tick."""

    def current(self) -> int:
        raise NotImplementedError


class ManualTicks(TickSource):
    """Logical clock advanced explicitly. Used in tests and local runs."""

    def __init__(self, start: int = 0):
        if start < 0:
            raise ValueError("start tick must not be negative")
        self._tick = start
        self._lock = threading.Lock()

    def current(self) -> int:
        return self._tick

    def advance(self, ticks: int = 1) -> int:
        if ticks < 0:
            raise ValueError("ticks can only move forward")
        with self._lock:
            self._tick += ticks
            return self._tick

    def set(self, tick: int) -> int:
        with self._lock:
            if tick < self._tick:
                raise ValueError(f"tick {tick} is behind current tick {self._tick}")
            self._tick = tick
            return self._tick


class BlockTicks(TickSource):
    """
    Block height derived from wall-clock time.

    height = (now - genesis) // block_time_seconds
    """

    def __init__(self, block_time_seconds: float = 2.0, genesis: Optional[float] = None):
        if block_time_seconds <= 0:
            raise ValueError("block_time_seconds must be positive")
        self.block_time_seconds = block_time_seconds
        self.genesis = time.time() if genesis is None else genesis

    def current(self) -> int:
        elapsed = time.time() - self.genesis
        return max(0, int(elapsed // self.block_time_seconds))
