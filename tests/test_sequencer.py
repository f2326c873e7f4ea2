"""Tests for sequencer: session transitions and the timer-driven controller."""

import random

import pytest

from grouping import GroupKind
from player import PlayerState
from sequencer import (
    PlaybackSession,
    Sequencer,
    advance,
    load,
    render_session,
    select_all,
    select_group,
    select_recent,
    select_shuffle,
    select_video,
)


def ids(session):
    return [it.id for it in session.items]


class TestTransitions:
    def test_load_shuffles_everything_unpinned(self, items, rng):
        s = load(PlaybackSession(), items, rng)
        assert sorted(ids(s)) == sorted(it.id for it in items)
        assert s.position == 0
        assert not s.pinned
        assert s.reset_token == 1

    def test_load_bumps_reset_token_each_time(self, items, rng):
        s = load(load(PlaybackSession(), items, rng), items, rng)
        assert s.reset_token == 2

    def test_select_all_keeps_source_order(self, items):
        s = select_all(PlaybackSession(position=3), items)
        assert ids(s) == [it.id for it in items]
        assert s.position == 0
        assert s.pinned

    def test_select_shuffle_is_pinned_permutation(self, items, rng):
        s = select_shuffle(PlaybackSession(), items, rng)
        assert sorted(ids(s)) == sorted(it.id for it in items)
        assert s.pinned

    def test_select_recent_reverses(self, items):
        s = select_recent(PlaybackSession(), items)
        assert ids(s) == [it.id for it in reversed(items)]
        assert s.pinned

    def test_select_group(self, items):
        s = select_group(PlaybackSession(), items, GroupKind.PLAYER, "Rui")
        assert ids(s) == ["0-Rui-10", "2-Rui-10"]
        assert s.pinned

    def test_select_missing_group_is_idle(self, items):
        s = select_group(PlaybackSession(), items, GroupKind.GAME, "nobody")
        assert s.idle
        assert s.current is None

    def test_select_video_within_group(self, items):
        s = select_video(PlaybackSession(), items, "2-Rui-10", (GroupKind.PLAYER, "Rui"))
        assert ids(s) == ["0-Rui-10", "2-Rui-10"]
        assert s.position == 1
        assert s.current.id == "2-Rui-10"

    def test_select_video_not_in_group_uses_full_list(self, items):
        s = select_video(PlaybackSession(), items, "1-Ana-7", (GroupKind.PLAYER, "Rui"))
        assert len(s.items) == len(items)
        assert s.current.id == "1-Ana-7"

    def test_select_video_unknown_id_falls_back_to_start(self, items):
        s = select_video(PlaybackSession(), items, "99-Nobody-0")
        assert ids(s) == [it.id for it in items]
        assert s.position == 0
        assert s.pinned


class TestAdvance:
    def test_pinned_steps_by_one(self, items):
        s = select_all(PlaybackSession(), items)
        nxt = advance(s, items)
        assert nxt.position == 1
        assert ids(nxt) == ids(s)
        assert nxt.pinned

    def test_pinned_last_reloads_shuffled_loop(self, items, rng):
        s = select_group(PlaybackSession(reset_token=4), items, GroupKind.PLAYER, "Rui")
        s = advance(s, items, rng)
        assert s.position == 1
        s = advance(s, items, rng)
        assert len(s.items) == len(items)
        assert s.position == 0
        assert not s.pinned
        assert s.reset_token == 5

    def test_unpinned_wraps(self, items, rng):
        s = load(PlaybackSession(), items, rng)
        order = ids(s)
        for step in range(1, 2 * len(items) + 1):
            s = advance(s, items, rng)
            assert s.position == step % len(items)
        assert ids(s) == order

    def test_empty_working_set_does_nothing(self, items):
        s = PlaybackSession()
        assert advance(s, items) is s


class TestEmptySource:
    def test_every_selection_is_idle(self, rng):
        s = PlaybackSession()
        for nxt in (
            load(s, [], rng),
            select_all(s, []),
            select_shuffle(s, [], rng),
            select_recent(s, []),
            select_group(s, [], GroupKind.PLAYER, "Rui"),
            select_video(s, [], "0-Rui-10", (GroupKind.PLAYER, "Rui")),
        ):
            assert nxt.idle
            assert advance(nxt, []).idle


class TestRenderSession:
    def test_idle_projection(self):
        view = render_session(PlaybackSession())
        assert view["idle"] is True
        assert view["position"] is None
        assert view["current"] is None

    def test_playing_projection(self, items):
        view = render_session(select_all(PlaybackSession(), items), cover_visible=True)
        assert view["current"]["id"] == "0-Rui-10"
        assert view["count"] == len(items)
        assert view["cover_visible"] is True
        assert view["up_next"] == ["1-Ana-7", "2-Rui-10", "3-Golos sofridos-0"]


class TestSequencer:
    @pytest.fixture
    def seq(self, adapter, scheduler, items):
        s = Sequencer(adapter, scheduler, watchdog_seconds=10, cover_seconds=1.2, rng=random.Random(7))
        s.set_source(items)
        return s

    def test_set_source_loads_and_plays(self, seq, adapter, scheduler, items):
        assert len(seq.session.items) == len(items)
        assert not seq.session.pinned
        assert seq.cover_visible
        assert len(scheduler.pending(1.2)) == 1
        video_id, start = adapter.loads[-1]
        assert seq.session.current.video_url.endswith(video_id)
        assert start == seq.session.current.start_at

    def test_started_hides_cover_and_arms_watchdog(self, seq, adapter, scheduler):
        adapter.emit(PlayerState.STARTED)
        assert not seq.cover_visible
        assert scheduler.pending(1.2) == []
        assert len(scheduler.pending(10)) == 1

    def test_watchdog_advances(self, seq, adapter, scheduler):
        adapter.emit(PlayerState.STARTED)
        scheduler.fire(scheduler.pending(10)[0])
        assert seq.session.position == 1

    def test_repeated_started_keeps_one_watchdog(self, seq, adapter, scheduler):
        adapter.emit(PlayerState.STARTED)
        adapter.emit(PlayerState.STARTED)
        assert len(scheduler.pending(10)) == 1

    def test_ended_advances_and_cancels_watchdog(self, seq, adapter, scheduler):
        adapter.emit(PlayerState.STARTED)
        watchdog = scheduler.pending(10)[0]
        adapter.emit(PlayerState.ENDED)
        assert seq.session.position == 1
        assert watchdog.cancelled
        assert seq.cover_visible

    def test_stale_watchdog_does_not_advance(self, seq, adapter, scheduler):
        adapter.emit(PlayerState.STARTED)
        watchdog = scheduler.pending(10)[0]
        seq.select_all()
        # Even if a cancelled handle still fires, it belongs to an old item
        watchdog.callback()
        assert seq.session.position == 0

    def test_cover_elapses(self, seq, scheduler):
        scheduler.fire(scheduler.pending(1.2)[0])
        assert not seq.cover_visible

    def test_selection_replaces_timers(self, seq, adapter, scheduler):
        adapter.emit(PlayerState.STARTED)
        seq.select_group(GroupKind.PLAYER, "Rui")
        assert scheduler.pending(10) == []
        assert len(scheduler.pending(1.2)) == 1
        assert seq.session.pinned
        assert adapter.loads[-1][0] == "vid_rui_01"

    def test_pinned_group_end_returns_to_loop(self, seq, adapter, items):
        seq.select_video("2-Rui-10", (GroupKind.PLAYER, "Rui"))
        token = seq.session.reset_token
        adapter.emit(PlayerState.ENDED)
        assert not seq.session.pinned
        assert len(seq.session.items) == len(items)
        assert seq.session.position == 0
        assert seq.session.reset_token == token + 1

    def test_empty_group_goes_idle(self, seq, adapter, scheduler):
        loads = len(adapter.loads)
        seq.select_group(GroupKind.GAME, "missing")
        assert seq.session.idle
        assert not seq.cover_visible
        assert scheduler.pending() == []
        assert len(adapter.loads) == loads
        adapter.emit(PlayerState.ENDED)
        assert seq.session.idle

    def test_empty_source_is_idle(self, adapter, scheduler):
        s = Sequencer(adapter, scheduler, watchdog_seconds=10, cover_seconds=1.2)
        s.set_source([])
        s.select_all()
        s.select_video("0-Rui-10")
        assert s.session.idle
        assert adapter.loads == []
        assert s.snapshot()["idle"] is True

    def test_snapshot_carries_command_for_current_item(self, seq, adapter):
        seq.select_group(GroupKind.PLAYER, "Rui")
        view = seq.snapshot()
        assert view["command"] is adapter.command
        assert view["command"]["video_id"] == "vid_rui_01"

    def test_snapshot_drops_command_of_replaced_item(self, seq, adapter):
        seq.select_group(GroupKind.PLAYER, "Rui")
        seq.select_group(GroupKind.GAME, "missing")
        assert adapter.command is not None
        assert seq.snapshot()["command"] is None
