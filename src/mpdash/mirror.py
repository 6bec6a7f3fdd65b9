"""Local mirror of the daemon's playback state."""

import threading
from typing import Callable, NamedTuple, Optional, TypeVar

from loguru import logger

from mpdash.models import PlaybackStatus, Playlist, Track
from mpdash.mpd_client import DaemonClient, DaemonError

T = TypeVar("T")

# Duration used before the first track change so progress never divides by 0.
_STARTUP_DURATION = 1


class MirrorView(NamedTuple):
    """Everything the renderer needs from one frame, read under the lock once."""

    status: PlaybackStatus
    current_track: Optional[Track]
    queue: tuple[Track, ...]
    playlists: tuple[Playlist, ...]
    current_duration: int


class PlaybackStateMirror:
    """Holds the latest snapshots fetched from the daemon.

    Owns the client. Every public method holds ``lock`` for the whole daemon
    round-trip, so a background refresher and the input handler never have
    two requests in flight.
    """

    def __init__(self, client: DaemonClient):
        self.client = client
        self.lock = threading.RLock()

        # Fatal: everything else is derived from the status.
        self._status = client.status()
        self._current_track = self._fetch_optional(client.current_track, "current track")
        self._queue = tuple(self._fetch_optional(client.queue, "queue") or ())
        self._playlists = tuple(self._fetch_optional(client.playlists, "playlists") or ())
        self._current_duration = self._duration_for(
            self._current_track, self._status, _STARTUP_DURATION
        )

    @staticmethod
    def _fetch_optional(fetch: Callable[[], T], what: str) -> Optional[T]:
        try:
            return fetch()
        except DaemonError as e:
            logger.warning(f"Could not fetch {what}: {e}")
            return None

    @staticmethod
    def _duration_for(
        track: Optional[Track], status: PlaybackStatus, fallback: int
    ) -> int:
        if track is not None and track.duration_seconds is not None:
            return track.duration_seconds
        if status.time is not None:
            return status.total
        return fallback

    def refresh(self) -> None:
        """Re-fetch daemon state.

        Raises DaemonError if the status cannot be fetched; the other fields
        degrade to empty on their own failures.
        """
        with self.lock:
            status = self.client.status()
            current_track = self._fetch_optional(self.client.current_track, "current track")
            queue = self._fetch_optional(self.client.queue, "queue")
            playlists = self._fetch_optional(self.client.playlists, "playlists")

            self._status = status
            self._queue = tuple(queue or ())
            self._playlists = tuple(playlists or ())

            if current_track != self._current_track:
                logger.debug(
                    f"Track changed: {getattr(current_track, 'file', None)}"
                )
                self._current_track = current_track
                self._current_duration = self._duration_for(current_track, status, 0)

    def close(self) -> None:
        """Release the daemon connection."""
        with self.lock:
            self.client.disconnect()

    # Accessors

    def status(self) -> PlaybackStatus:
        return self._status

    def current_track(self) -> Optional[Track]:
        return self._current_track

    def queue(self) -> tuple[Track, ...]:
        return self._queue

    def playlists(self) -> tuple[Playlist, ...]:
        return self._playlists

    def current_playing_index(self) -> Optional[int]:
        return self._status.song

    def current_duration(self) -> int:
        """Duration of the current track in seconds, cached per track."""
        return self._current_duration

    def snapshot(self) -> MirrorView:
        with self.lock:
            return MirrorView(
                status=self._status,
                current_track=self._current_track,
                queue=self._queue,
                playlists=self._playlists,
                current_duration=self._current_duration,
            )

    # Commands

    def issue_toggle_pause(self) -> bool:
        """Toggle pause. Returns True if the daemon accepted it."""
        with self.lock:
            try:
                self.client.toggle_pause()
                return True
            except DaemonError as e:
                logger.error(f"Error toggling pause: {e}")
                return False

    def issue_volume(self, delta: int) -> bool:
        """Change volume by ``delta``, clamped to 0-100.

        Sends nothing when the clamped value equals the current volume.
        """
        with self.lock:
            current = self._status.volume
            if current < 0:
                logger.warning("Daemon reports no mixer; volume unchanged")
                return False
            target = max(0, min(100, current + delta))
            if target == current:
                return False
            try:
                self.client.set_volume(target)
            except DaemonError as e:
                logger.error(f"Error setting volume: {e}")
                return False
            # Reflect the change until the next refresh
            self._status = self._status.model_copy(update={"volume": target})
            return True

    def issue_switch(self, index: int) -> bool:
        """Switch playback to queue position ``index``."""
        with self.lock:
            try:
                self.client.switch_to(index)
                return True
            except DaemonError as e:
                logger.error(f"Error switching to {index}: {e}")
                return False
