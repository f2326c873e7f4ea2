"""
sequencer.py

Decides which clip plays next.

PlaybackSession is an immutable value; the module-level functions are the
only transitions between sessions.  Sequencer owns the active session and
wires it to the player adapter and to the watchdog / cover timers.
"""
from __future__ import annotations

import logging
import random
from dataclasses import dataclass, replace
from typing import Sequence

import settings
from grouping import GroupKind, group_by
from helpers import PlaylistItem, extract_youtube_id
from player import PlayerAdapter, PlayerState, Scheduler, TimerHandle

logger = logging.getLogger(__name__)

GroupContext = tuple[GroupKind, str]


@dataclass(frozen=True)
class PlaybackSession:
    items: tuple[PlaylistItem, ...] = ()
    position: int = 0
    pinned: bool = False
    reset_token: int = 0

    @property
    def idle(self) -> bool:
        return not self.items

    @property
    def current(self) -> PlaylistItem | None:
        if 0 <= self.position < len(self.items):
            return self.items[self.position]
        return None


def _shuffled(source: Sequence[PlaylistItem], rng: random.Random | None) -> tuple[PlaylistItem, ...]:
    items = list(source)
    (rng or random).shuffle(items)
    return tuple(items)


def _index_of(items: Sequence[PlaylistItem], item_id: str) -> int:
    for idx, item in enumerate(items):
        if item.id == item_id:
            return idx
    return -1


# Transitions

def load(session: PlaybackSession, source: Sequence[PlaylistItem], rng: random.Random | None = None) -> PlaybackSession:
    """Default autoplay loop: everything, shuffled, wrapping forever."""
    return PlaybackSession(
        items=_shuffled(source, rng),
        position=0,
        pinned=False,
        reset_token=session.reset_token + 1,
    )


def select_all(session: PlaybackSession, source: Sequence[PlaylistItem]) -> PlaybackSession:
    return replace(session, items=tuple(source), position=0, pinned=True)


def select_shuffle(session: PlaybackSession, source: Sequence[PlaylistItem], rng: random.Random | None = None) -> PlaybackSession:
    return replace(session, items=_shuffled(source, rng), position=0, pinned=True)


def select_recent(session: PlaybackSession, source: Sequence[PlaylistItem]) -> PlaybackSession:
    return replace(session, items=tuple(reversed(source)), position=0, pinned=True)


def select_group(session: PlaybackSession, source: Sequence[PlaylistItem], kind: GroupKind, value: str) -> PlaybackSession:
    group = group_by(source, kind).get(value, [])
    return replace(session, items=tuple(group), position=0, pinned=True)


def select_video(
    session: PlaybackSession,
    source: Sequence[PlaylistItem],
    item_id: str,
    context: GroupContext | None = None,
) -> PlaybackSession:
    """Jump to one clip, inside its group when the menu gave one."""
    if context is not None:
        kind, value = context
        group = group_by(source, kind).get(value, [])
        idx = _index_of(group, item_id)
        if idx >= 0:
            return replace(session, items=tuple(group), position=idx, pinned=True)

    idx = _index_of(source, item_id)
    return replace(session, items=tuple(source), position=max(0, idx), pinned=True)


def advance(session: PlaybackSession, source: Sequence[PlaylistItem], rng: random.Random | None = None) -> PlaybackSession:
    """
    Pinned sets run once and then fall back to the shuffled loop;
    the default loop wraps around.
    """
    n = len(session.items)
    if n == 0:
        return session
    if session.pinned:
        if session.position + 1 >= n:
            return load(session, source, rng)
        return replace(session, position=session.position + 1)
    return replace(session, position=(session.position + 1) % n)


def render_session(session: PlaybackSession, *, cover_visible: bool = False, command: dict | None = None) -> dict:
    """JSON view of the session for the page."""
    current = session.current
    return {
        "idle": session.idle,
        "count": len(session.items),
        "position": session.position if not session.idle else None,
        "pinned": session.pinned,
        "reset_token": session.reset_token,
        "cover_visible": cover_visible,
        "current": current.to_dict() if current else None,
        "up_next": [it.id for it in session.items[session.position + 1:session.position + 4]],
        "command": command,
    }


# Controller

class Sequencer:
    def __init__(
        self,
        adapter: PlayerAdapter,
        scheduler: Scheduler,
        *,
        watchdog_seconds: float | None = None,
        cover_seconds: float | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.adapter = adapter
        self.scheduler = scheduler
        self.watchdog_seconds = settings.WATCHDOG_SECONDS if watchdog_seconds is None else watchdog_seconds
        self.cover_seconds = settings.COVER_SECONDS if cover_seconds is None else cover_seconds
        self.rng = rng or random.Random()

        self.source: tuple[PlaylistItem, ...] = ()
        self.session = PlaybackSession()
        self.cover_visible = False

        # Bumped on every transition; timers armed for an older generation are stale
        self._generation = 0
        self._watchdog: TimerHandle | None = None
        self._cover: TimerHandle | None = None

        adapter.subscribe(self.on_player_state)

    # source
    def set_source(self, items: Sequence[PlaylistItem]) -> None:
        """Replace the full list wholesale and restart the default loop."""
        self.source = tuple(items)
        logger.info(f"Source list loaded: {len(self.source)} items")
        self.load()

    # operations
    def load(self) -> None:
        self._apply(load(self.session, self.source, self.rng), "load")

    def select_all(self) -> None:
        self._apply(select_all(self.session, self.source), "select_all")

    def select_shuffle(self) -> None:
        self._apply(select_shuffle(self.session, self.source, self.rng), "select_shuffle")

    def select_recent(self) -> None:
        self._apply(select_recent(self.session, self.source), "select_recent")

    def select_group(self, kind: GroupKind, value: str) -> None:
        self._apply(select_group(self.session, self.source, kind, value), "select_group")

    def select_video(self, item_id: str, context: GroupContext | None = None) -> None:
        self._apply(select_video(self.session, self.source, item_id, context), "select_video")

    def advance(self) -> None:
        if self.session.idle:
            return
        self._apply(advance(self.session, self.source, self.rng), "advance")

    # player events
    def on_player_state(self, state: PlayerState) -> None:
        if state is PlayerState.STARTED:
            self.cover_visible = False
            self._cancel_cover()
            self._cancel_watchdog()
            generation = self._generation
            self._watchdog = self.scheduler.call_later(
                self.watchdog_seconds, lambda: self._on_watchdog(generation)
            )
        elif state is PlayerState.ENDED:
            self.advance()

    def _on_watchdog(self, generation: int) -> None:
        if generation != self._generation:
            return
        self._watchdog = None
        logger.debug("Watchdog elapsed, advancing")
        self.advance()

    def _on_cover_elapsed(self, generation: int) -> None:
        if generation != self._generation:
            return
        self._cover = None
        self.cover_visible = False

    # internals
    def _cancel_watchdog(self) -> None:
        if self._watchdog is not None:
            self._watchdog.cancel()
            self._watchdog = None

    def _cancel_cover(self) -> None:
        if self._cover is not None:
            self._cover.cancel()
            self._cover = None

    def _apply(self, session: PlaybackSession, reason: str) -> None:
        self._cancel_watchdog()
        self._cancel_cover()
        self._generation += 1
        self.session = session

        current = session.current
        logger.debug(
            f"{reason}: position={session.position} of {len(session.items)} "
            f"pinned={session.pinned} reset_token={session.reset_token}"
        )
        if current is None:
            self.cover_visible = False
            logger.info(f"{reason}: working set empty, playback idle")
            return

        self.cover_visible = True
        generation = self._generation
        self._cover = self.scheduler.call_later(
            self.cover_seconds, lambda: self._on_cover_elapsed(generation)
        )

        video_id = extract_youtube_id(current.video_url)
        if video_id is None:
            logger.warning(f"Item {current.id} has no playable video: {current.video_url!r}")
            return
        self.adapter.load(video_id, current.start_at)

    def snapshot(self) -> dict:
        # Only hand out a load command that belongs to the current item
        command = self.adapter.command
        current = self.session.current
        if command and (current is None or command.get("video_id") != extract_youtube_id(current.video_url)):
            command = None
        return render_session(self.session, cover_visible=self.cover_visible, command=command)
