"""Tests for the event log and event serialization."""

import pytest

from canvas_ledger.canvas.event_log import EventLog
from canvas_ledger.canvas.ledger import CanvasLedger
from canvas_ledger.models.event_models import (
    CanvasCreated,
    EventType,
    PixelColored,
    Transfer,
    event_payload,
    find_event_type,
)

from conftest import CREATOR, PAINTER


def pixel(canvas_id, x=0):
    return PixelColored(canvas_id=canvas_id, editor=PAINTER, x=x, y=0, color=1)


class TestEventLog:

    def test_sequences_start_at_one(self):
        log = EventLog()
        published = log.publish([pixel(1), pixel(1, x=1)])
        assert [e.sequence for e in published] == [1, 2]
        assert log.last_sequence == 2

    def test_since_returns_later_events(self):
        log = EventLog()
        log.publish([pixel(1, x=i) for i in range(5)])
        assert [e.sequence for e in log.since(3)] == [4, 5]
        assert log.since(5) == []

    def test_filters(self):
        log = EventLog()
        log.publish([pixel(1), pixel(2), pixel(1, x=1)])
        assert [e.sequence for e in log.since(0, canvas_id=1)] == [1, 3]
        assert [e.sequence for e in log.since(0, limit=2)] == [1, 2]
        assert log.since(0, event_type=EventType.CANVAS_CLAIMED) == []

    def test_subscribers_see_sequenced_events(self):
        log = EventLog()
        received = []
        log.subscribe(received.append)
        log.publish([pixel(1)])
        log.unsubscribe(received.append)
        log.publish([pixel(1)])
        assert [e.sequence for e in received] == [1]


class TestRetention:

    def test_keeps_only_recent_events(self):
        log = EventLog(retention=3)
        log.publish([pixel(1, x=i) for i in range(5)])
        assert log.last_sequence == 5
        assert log.first_sequence == 3
        assert [e.sequence for e in log.since(0)] == [3, 4, 5]
        assert [e.sequence for e in log.since(3)] == [4, 5]

    def test_sequences_continue_past_the_window(self):
        log = EventLog(retention=2)
        log.publish([pixel(1)] * 4)
        assert [e.sequence for e in log.publish([pixel(1)])] == [5]

    def test_empty_log_window(self):
        assert EventLog(retention=2).first_sequence == 1

    def test_retention_must_be_positive(self):
        with pytest.raises(ValueError):
            EventLog(retention=0)

    def test_ledger_passes_retention(self, ticks):
        ledger = CanvasLedger(ticks=ticks, event_retention=1)
        canvas_id = ledger.create_canvas(2, 2, 5, CREATOR)
        ledger.set_pixel(canvas_id, 0, 0, 1, PAINTER)
        assert [e.event for e in ledger.events.since(0)] == [EventType.PIXEL_COLORED]


class TestLedgerEvents:

    def test_subscriber_sees_ledger_activity_in_order(self, ledger, ticks):
        received = []
        ledger.events.subscribe(received.append)

        canvas_id = ledger.create_canvas(2, 2, 2, CREATOR)
        ledger.set_pixel(canvas_id, 1, 1, 8, PAINTER)
        ticks.set(2)
        ledger.claim(canvas_id, "Qm", CREATOR)

        assert [e.event for e in received] == [
            EventType.CANVAS_CREATED,
            EventType.PIXEL_COLORED,
            EventType.TRANSFER,
            EventType.CANVAS_CLAIMED,
        ]
        assert [e.tick for e in received] == [0, 0, 2, 2]

    def test_subscriber_may_read_the_canvas(self, ledger):
        views = []
        ledger.events.subscribe(lambda e: views.append(ledger.get_canvas(e.canvas_id)))
        canvas_id = ledger.create_canvas(2, 2, 2, CREATOR)
        assert views[0].id == canvas_id


class TestPayload:

    def test_camel_case_keys(self):
        event = CanvasCreated(
            sequence=1, tick=3, canvas_id=7, creator=CREATOR,
            width=2, height=3, start_tick=3, max_duration_ticks=9,
        )
        assert event_payload(event) == {
            "sequence": 1,
            "tick": 3,
            "canvasId": 7,
            "event": "CanvasCreated",
            "creator": CREATOR,
            "width": 2,
            "height": 3,
            "startTick": 3,
            "maxDurationTicks": 9,
        }

    def test_transfer_uses_from_and_to(self):
        payload = event_payload(Transfer(canvas_id=1, sender="", receiver=CREATOR, token_id=1))
        assert payload["from"] == ""
        assert payload["to"] == CREATOR
        assert payload["tokenId"] == 1

    def test_find_event_type(self):
        assert find_event_type("PixelColored") == EventType.PIXEL_COLORED
        assert find_event_type("Nope") is None
