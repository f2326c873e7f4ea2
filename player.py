"""
player.py  -  the embedded video player as seen from the server

The sequencer only needs two things from the player: a way to load a video
at an offset, and the "started" / "ended" notifications.  The page hosting
the YouTube iframe polls the latest load command and posts state changes
back; RemotePlayerAdapter is the server half of that exchange.
"""
from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Any, Callable, Protocol

logger = logging.getLogger(__name__)


class PlayerState(Enum):
    STARTED = "started"
    ENDED = "ended"

    @classmethod
    def parse(cls, value: Any) -> "PlayerState | None":
        """Map iframe codes (1 playing, 0 ended) and names; None for the rest."""
        if isinstance(value, bool):
            return None
        if isinstance(value, int):
            return {1: cls.STARTED, 0: cls.ENDED}.get(value)
        if isinstance(value, str):
            name = value.strip().lower()
            if name in ("started", "playing", "1"):
                return cls.STARTED
            if name in ("ended", "0"):
                return cls.ENDED
        return None


Listener = Callable[[PlayerState], None]


class PlayerAdapter(Protocol):
    # Latest load command, or None before the first load
    command: dict | None

    def load(self, video_id: str, start_offset: int) -> None: ...

    def subscribe(self, listener: Listener) -> None: ...


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class AsyncioScheduler:
    """Delayed callbacks on the running event loop."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return asyncio.get_running_loop().call_later(delay, callback)


class RemotePlayerAdapter:
    # Muted autoplay, no controls or branding
    PLAYER_VARS = {
        "autoplay": 1,
        "mute": 1,
        "controls": 0,
        "modestbranding": 1,
        "rel": 0,
        "fs": 0,
        "disablekb": 1,
        "iv_load_policy": 3,
        "playsinline": 1,
        "showinfo": 0,
    }

    def __init__(self) -> None:
        self._listeners: list[Listener] = []
        self.sequence = 0
        self.command: dict | None = None

    def load(self, video_id: str, start_offset: int) -> None:
        self.sequence += 1
        self.command = {
            "sequence": self.sequence,
            "video_id": video_id,
            "start_seconds": max(0, int(start_offset)),
            "player_vars": dict(self.PLAYER_VARS, start=max(0, int(start_offset))),
        }
        logger.debug(f"Load command {self.sequence}: {video_id} @ {start_offset}s")

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def notify(self, raw_state: Any, sequence: int | None = None) -> PlayerState | None:
        """
        Forward a state reported by the page. Unknown states are dropped, and
        so are states tagged with a load command other than the latest one.
        """
        state = PlayerState.parse(raw_state)
        if state is None:
            logger.debug(f"Ignoring player state {raw_state!r}")
            return None
        if sequence is not None and (self.command is None or sequence != self.command["sequence"]):
            logger.debug(f"Ignoring {state.value} for superseded command {sequence}")
            return None
        for listener in list(self._listeners):
            listener(state)
        return state
