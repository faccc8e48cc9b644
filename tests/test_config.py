"""Tests for configuration helpers."""

import time

import pytest

from canvas_ledger import config
from canvas_ledger.canvas.snapshot_store import SnapshotStore
from canvas_ledger.canvas.ticks import BlockTicks, ManualTicks


class TestTickSources:

    def test_manual_mode(self):
        assert isinstance(config.build_tick_source("manual"), ManualTicks)

    def test_block_mode(self, monkeypatch):
        monkeypatch.setattr(config, "BLOCK_TIME_SECONDS", 12.0)
        monkeypatch.setattr(config, "GENESIS_TIMESTAMP", "1000")
        source = config.build_tick_source("block")
        assert isinstance(source, BlockTicks)
        assert source.block_time_seconds == 12.0
        assert source.genesis == 1000.0

    def test_unknown_mode(self):
        with pytest.raises(ValueError):
            config.build_tick_source("sundial")

    def test_block_height_from_genesis(self):
        source = BlockTicks(block_time_seconds=2.0, genesis=time.time() - 10.5)
        assert source.current() in (5, 6)

    def test_block_height_never_negative(self):
        assert BlockTicks(genesis=time.time() + 100).current() == 0

    def test_manual_ticks_only_move_forward(self):
        ticks = ManualTicks(start=5)
        with pytest.raises(ValueError):
            ticks.advance(-1)
        with pytest.raises(ValueError):
            ticks.set(4)
        assert ticks.advance(2) == 7


class TestOtherSettings:

    def test_snapshot_store_disabled_by_default(self, monkeypatch):
        monkeypatch.setattr(config, "SNAPSHOT_DIR", None)
        assert config.build_snapshot_store() is None

    def test_snapshot_store_enabled(self, tmp_path):
        store = config.build_snapshot_store(str(tmp_path / "snap"))
        assert isinstance(store, SnapshotStore)

    def test_cors_origins(self):
        assert config.cors_origins("https://a.test, https://b.test,") == [
            "https://a.test", "https://b.test"
        ]
        assert config.cors_origins("*") == ["*"]

    def test_event_retention(self, monkeypatch):
        monkeypatch.setattr(config, "EVENT_RETENTION", 500)
        assert config.event_retention() == 500
        assert config.event_retention(0) is None
