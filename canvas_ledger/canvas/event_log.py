"""
Event Log
=========

Ordered, in-memory record of ledger observations. Sequence numbers are
global and strictly increasing; subscribers are called synchronously after
an event is appended.

With a retention limit only the most recent events are kept. Sequence
numbers keep counting from where they were, and readers asking for events
older than the window get what is still held, starting at first_sequence.
"""

import logging
import threading
from collections import deque
from itertools import islice
from typing import Callable, Deque, List, Optional

from ..models.event_models import EventType, LedgerEvent

logger = logging.getLogger(__name__)

Subscriber = Callable[[LedgerEvent], None]


class EventLog:
    """Append-only observation log with subscriber callbacks."""

    def __init__(self, retention: Optional[int] = None):
        if retention is not None and retention <= 0:
            raise ValueError(f"retention must be positive, got {retention}")
        self.retention = retention
        self._events: Deque[LedgerEvent] = deque(maxlen=retention)
        self._last_sequence = 0
        self._subscribers: List[Subscriber] = []
        self._lock = threading.Lock()

    @property
    def last_sequence(self) -> int:
        return self._last_sequence

    @property
    def first_sequence(self) -> int:
        """Sequence of the oldest event still held, or the next one if empty."""
        with self._lock:
            return self._last_sequence - len(self._events) + 1

    def subscribe(self, callback: Subscriber) -> None:
        self._subscribers.append(callback)

    def unsubscribe(self, callback: Subscriber) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def publish(self, events: List[LedgerEvent]) -> List[LedgerEvent]:
        """Assign sequence numbers, append, then notify subscribers."""
        with self._lock:
            published = []
            for event in events:
                self._last_sequence += 1
                event = event.with_sequence(self._last_sequence)
                self._events.append(event)
                published.append(event)

        for event in published:
            logger.debug(f"[EVENTS] #{event.sequence} {event.event.value} canvas={event.canvas_id}")
            for callback in list(self._subscribers):
                callback(event)
        return published

    def since(
        self,
        sequence: int = 0,
        canvas_id: Optional[int] = None,
        event_type: Optional[EventType] = None,
        limit: Optional[int] = None,
    ) -> List[LedgerEvent]:
        """Events with a sequence greater than the given one, optionally filtered."""
        with self._lock:
            first = self._last_sequence - len(self._events) + 1
            start = max(sequence - first + 1, 0)
            tail = list(islice(self._events, start, None))
        if canvas_id is not None:
            tail = [e for e in tail if e.canvas_id == canvas_id]
        if event_type is not None:
            tail = [e for e in tail if getattr(e, "event", None) == event_type]
        if limit is not None:
            tail = tail[:limit]
        return tail
