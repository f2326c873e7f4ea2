"""Shared pytest fixtures for the highlights player tests."""

from __future__ import annotations

import json
import random

import pytest

import settings
from helpers import normalize_playlist


class FakeTimer:
    def __init__(self, delay, callback):
        self.delay = delay
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeScheduler:
    """Records delayed callbacks; tests fire them by hand."""

    def __init__(self):
        self.timers: list[FakeTimer] = []

    def call_later(self, delay, callback):
        timer = FakeTimer(delay, callback)
        self.timers.append(timer)
        return timer

    def pending(self, delay=None) -> list[FakeTimer]:
        return [t for t in self.timers if not t.cancelled and (delay is None or t.delay == delay)]

    def fire(self, timer: FakeTimer) -> None:
        self.timers.remove(timer)
        timer.callback()


class FakeAdapter:
    def __init__(self):
        self.loads: list[tuple[str, int]] = []
        self.listeners = []
        self.command = None

    def load(self, video_id, start_offset):
        self.loads.append((video_id, start_offset))
        self.command = {"sequence": len(self.loads), "video_id": video_id, "start_seconds": start_offset}

    def subscribe(self, listener):
        self.listeners.append(listener)

    def emit(self, state):
        for listener in self.listeners:
            listener(state)


RAW_RECORDS = [
    {"playerName": "Rui", "playerNumber": 10, "id": "vid_rui_01", "jogo": "A vs B", "campeonato": "Liga", "title": "Golo"},
    {"playerName": "Ana", "playerNumber": 7, "id": "vid_ana_001", "jogo": "A vs B", "campeonato": "Liga", "title": "Defesa"},
    {"playerName": "Rui", "playerNumber": 10, "id": "vid_rui_02", "jogo": "C vs A", "campeonato": "Taça", "title": "Assistência"},
    {"playerName": "Golos sofridos", "playerNumber": 0, "id": "vid_gs_001", "jogo": "C vs A", "title": "Golo sofrido"},
    {"playerName": "Bruno", "playerNumber": 4, "id": "vid_bru_001", "jogo": "A vs D", "campeonato": "Liga", "title": "Corte"},
]


@pytest.fixture
def raw_records() -> list[dict]:
    return [dict(r) for r in RAW_RECORDS]


@pytest.fixture
def items(raw_records):
    return normalize_playlist(raw_records)


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def adapter() -> FakeAdapter:
    return FakeAdapter()


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def app_paths(tmp_path, monkeypatch, raw_records):
    """Point the service at a throwaway database, seed list and config."""
    seed = tmp_path / "playlist.json"
    seed.write_text(json.dumps(raw_records), encoding="utf-8")
    config = tmp_path / "config.json"
    config.write_text(json.dumps({"title": "Test Team"}), encoding="utf-8")

    monkeypatch.setattr(settings, "DB_PATH", tmp_path / "db" / "database.db")
    monkeypatch.setattr(settings, "SEED_PLAYLIST_PATH", seed)
    monkeypatch.setattr(settings, "CONFIG_PATH", config)
    monkeypatch.setattr(settings, "LOGGER_CONFIG_PATH", tmp_path / "missing_logger_config.yaml")
    monkeypatch.setattr(settings, "WATCHDOG_SECONDS", 600.0)
    monkeypatch.setattr(settings, "COVER_SECONDS", 600.0)
    return {"seed": seed, "config": config}
