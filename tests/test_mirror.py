"""Tests for the playback state mirror."""

import threading

import pytest
from unittest.mock import MagicMock

from mpdash.mirror import PlaybackStateMirror
from mpdash.models import PlaybackStatus, Playlist, Track
from mpdash.mpd_client import (
    DaemonClient,
    DaemonCommandError,
    DaemonConnectionError,
    DaemonError,
)

TRACK_A = Track(file="a.flac", title="A", duration=180.0, tags={"artist": "X"})
TRACK_B = Track(file="b.flac", title="B", duration=210.0, tags={"artist": "Y"})
TRACK_C = Track(file="c.flac", title="C", duration=95.0)


def make_client(
    volume=50, song=0, track=TRACK_A, queue=(TRACK_A, TRACK_B, TRACK_C)
):
    client = MagicMock(spec=DaemonClient)
    client.status.return_value = PlaybackStatus(
        state="play",
        volume=volume,
        time=(10.0, 180.0),
        song=song,
        queue_len=len(queue),
    )
    client.current_track.return_value = track
    client.queue.return_value = list(queue)
    client.playlists.return_value = [Playlist(name="Jazz"), Playlist(name="Rock")]
    return client


class TestMirrorConstruction:
    """Tests for building a mirror."""

    def test_initial_fetch(self):
        mirror = PlaybackStateMirror(make_client())
        assert mirror.status().volume == 50
        assert mirror.current_track() == TRACK_A
        assert mirror.queue() == (TRACK_A, TRACK_B, TRACK_C)
        assert [p.name for p in mirror.playlists()] == ["Jazz", "Rock"]
        assert mirror.current_playing_index() == 0
        assert mirror.current_duration() == 180

    def test_status_failure_is_fatal(self):
        client = make_client()
        client.status.side_effect = DaemonConnectionError("refused")
        with pytest.raises(DaemonError):
            PlaybackStateMirror(client)

    def test_optional_fetches_degrade(self):
        client = make_client()
        client.queue.side_effect = DaemonCommandError("denied")
        client.playlists.side_effect = DaemonCommandError("denied")
        mirror = PlaybackStateMirror(client)
        assert mirror.queue() == ()
        assert mirror.playlists() == ()

    def test_startup_duration_fallback_is_one(self):
        client = make_client(track=None)
        client.status.return_value = PlaybackStatus(state="stop", volume=50)
        mirror = PlaybackStateMirror(client)
        assert mirror.current_duration() == 1


class TestMirrorRefresh:
    """Tests for refresh()."""

    @pytest.fixture
    def client(self):
        return make_client()

    @pytest.fixture
    def mirror(self, client):
        return PlaybackStateMirror(client)

    def test_refresh_replaces_snapshots(self, mirror, client):
        client.queue.return_value = [TRACK_B]
        client.status.return_value = PlaybackStatus(volume=30, song=0, queue_len=1)
        mirror.refresh()
        assert mirror.queue() == (TRACK_B,)
        assert mirror.status().volume == 30

    def test_unchanged_track_keeps_cached_duration(self, mirror, client):
        # Same track, but the daemon now reports a different total time
        client.status.return_value = PlaybackStatus(
            state="play", volume=50, time=(20.0, 999.0), song=0, queue_len=3
        )
        client.current_track.return_value = TRACK_A.model_copy()
        mirror.refresh()
        first = mirror.current_duration()
        mirror.refresh()
        assert first == 180
        assert mirror.current_duration() == first

    def test_changed_track_recomputes_duration(self, mirror, client):
        client.current_track.return_value = TRACK_B
        mirror.refresh()
        assert mirror.current_track() == TRACK_B
        assert mirror.current_duration() == 210

    def test_same_position_different_track_recomputes(self, mirror, client):
        # Queue edited externally: position 0 now holds another track
        client.current_track.return_value = TRACK_C
        mirror.refresh()
        assert mirror.current_playing_index() == 0
        assert mirror.current_duration() == 95

    def test_track_without_duration_falls_back_to_status(self, mirror, client):
        client.current_track.return_value = Track(file="stream.mp3")
        mirror.refresh()
        assert mirror.current_duration() == 180

    def test_no_duration_anywhere_falls_back_to_zero(self, mirror, client):
        client.current_track.return_value = None
        client.status.return_value = PlaybackStatus(state="stop", volume=50)
        mirror.refresh()
        assert mirror.current_duration() == 0

    def test_status_failure_propagates_and_keeps_state(self, mirror, client):
        client.status.side_effect = DaemonConnectionError("lost")
        client.queue.return_value = []
        with pytest.raises(DaemonError):
            mirror.refresh()
        assert len(mirror.queue()) == 3
        assert mirror.status().volume == 50

    def test_queue_failure_degrades_to_empty(self, mirror, client):
        client.queue.side_effect = DaemonCommandError("denied")
        mirror.refresh()
        assert mirror.queue() == ()
        assert mirror.status().volume == 50

    def test_current_track_failure_degrades_to_unknown(self, mirror, client):
        client.current_track.side_effect = DaemonCommandError("denied")
        mirror.refresh()
        assert mirror.current_track() is None

    def test_snapshot(self, mirror):
        view = mirror.snapshot()
        assert view.status is mirror.status()
        assert view.queue == mirror.queue()
        assert view.current_duration == 180

    def test_close_disconnects(self, mirror, client):
        mirror.close()
        client.disconnect.assert_called_once()


class TestMirrorCommands:
    """Tests for command pass-through."""

    def test_volume_clamps_down(self):
        client = make_client(volume=3)
        mirror = PlaybackStateMirror(client)
        assert mirror.issue_volume(-5) is True
        client.set_volume.assert_called_once_with(0)

    def test_volume_clamps_up(self):
        client = make_client(volume=98)
        mirror = PlaybackStateMirror(client)
        assert mirror.issue_volume(5) is True
        client.set_volume.assert_called_once_with(100)

    def test_volume_at_boundary_sends_nothing(self):
        client = make_client(volume=0)
        mirror = PlaybackStateMirror(client)
        assert mirror.issue_volume(-5) is False
        client.set_volume.assert_not_called()

    def test_volume_reflected_locally(self):
        client = make_client(volume=50)
        mirror = PlaybackStateMirror(client)
        mirror.issue_volume(5)
        mirror.issue_volume(5)
        assert client.set_volume.call_args_list[-1].args == (60,)
        assert mirror.status().volume == 60

    def test_volume_without_mixer(self):
        client = make_client(volume=-1)
        mirror = PlaybackStateMirror(client)
        assert mirror.issue_volume(5) is False
        client.set_volume.assert_not_called()

    def test_volume_failure_is_swallowed(self):
        client = make_client(volume=50)
        client.set_volume.side_effect = DaemonCommandError("no mixer")
        mirror = PlaybackStateMirror(client)
        assert mirror.issue_volume(5) is False
        assert mirror.status().volume == 50

    def test_toggle_pause(self):
        client = make_client()
        mirror = PlaybackStateMirror(client)
        assert mirror.issue_toggle_pause() is True
        client.toggle_pause.assert_called_once()

    def test_toggle_pause_failure_is_swallowed(self):
        client = make_client()
        client.toggle_pause.side_effect = DaemonConnectionError("lost")
        mirror = PlaybackStateMirror(client)
        assert mirror.issue_toggle_pause() is False

    def test_switch(self):
        client = make_client()
        mirror = PlaybackStateMirror(client)
        assert mirror.issue_switch(2) is True
        client.switch_to.assert_called_once_with(2)

    def test_switch_failure_is_swallowed(self):
        client = make_client()
        client.switch_to.side_effect = DaemonCommandError("Bad song index")
        mirror = PlaybackStateMirror(client)
        assert mirror.issue_switch(7) is False


class TestMirrorLocking:
    """Only one daemon round-trip may be in flight at a time."""

    @pytest.fixture
    def blocked_refresh(self):
        client = make_client()
        mirror = PlaybackStateMirror(client)
        entered = threading.Event()
        release = threading.Event()
        status = client.status.return_value

        def slow_status():
            entered.set()
            release.wait(5)
            return status

        client.status.side_effect = slow_status
        worker = threading.Thread(target=mirror.refresh)
        worker.start()
        assert entered.wait(5)
        yield mirror, client, release
        release.set()
        worker.join(5)

    @pytest.mark.parametrize(
        "issue, args, command",
        [
            ("issue_switch", (1,), "switch_to"),
            ("issue_volume", (5,), "set_volume"),
            ("issue_toggle_pause", (), "toggle_pause"),
        ],
    )
    def test_command_waits_for_refresh(self, blocked_refresh, issue, args, command):
        mirror, client, release = blocked_refresh
        commander = threading.Thread(target=getattr(mirror, issue), args=args)
        commander.start()
        commander.join(0.2)

        assert commander.is_alive()
        getattr(client, command).assert_not_called()

        release.set()
        commander.join(5)
        assert not commander.is_alive()
        getattr(client, command).assert_called_once()

    def test_lock_held_during_refresh(self, blocked_refresh):
        mirror, _, release = blocked_refresh
        assert not mirror.lock.acquire(blocking=False)
        release.set()
        assert mirror.lock.acquire(timeout=5)
        mirror.lock.release()

    def test_snapshot_waits_for_refresh(self, blocked_refresh):
        mirror, client, release = blocked_refresh
        client.queue.return_value = [TRACK_A]
        views = []
        reader = threading.Thread(target=lambda: views.append(mirror.snapshot()))
        reader.start()
        reader.join(0.2)
        assert not views

        release.set()
        reader.join(5)
        assert views[0].queue == (TRACK_A,)
