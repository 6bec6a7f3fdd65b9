"""Blocking MPD control client."""

from typing import Any, Callable, Optional

import mpd
from loguru import logger

from mpdash.models import (
    PlaybackStatus,
    Playlist,
    Track,
    parse_playlist,
    parse_status,
    parse_track,
)


class DaemonError(Exception):
    """A request to the daemon failed."""


class DaemonConnectionError(DaemonError):
    """The connection to the daemon is broken or was never made."""


class DaemonCommandError(DaemonError):
    """The daemon rejected a command."""


class DaemonClient:
    """Client for the MPD control protocol.

    Calls are synchronous and are not safe to issue from two threads at
    once; PlaybackStateMirror serializes access.
    """

    def __init__(
        self,
        host: str = "127.0.0.1",
        port: int = 6600,
        password: Optional[str] = None,
        timeout: int = 10,
    ):
        self.host = host
        self.port = port
        self.password = password
        self.timeout = timeout
        self._connected = False

        self.client = mpd.MPDClient()
        self.client.timeout = timeout
        self.client.idletimeout = None

    def connect(self) -> None:
        """Connect to the daemon and authenticate if a password is set."""
        logger.info(f"Connecting to MPD at {self.host}:{self.port}")
        try:
            self.client.connect(self.host, self.port)
            if self.password:
                self.client.password(self.password)
        except mpd.CommandError as e:
            raise DaemonCommandError(f"Authentication failed: {e}") from e
        except (mpd.ConnectionError, OSError) as e:
            raise DaemonConnectionError(
                f"Cannot connect to {self.host}:{self.port}: {e}"
            ) from e
        self._connected = True
        logger.info(f"Connected to MPD {self.client.mpd_version}")

    def disconnect(self) -> None:
        """Close the connection. Safe to call when not connected."""
        if not self._connected:
            return
        logger.info("Disconnecting from MPD")
        try:
            self.client.close()
            self.client.disconnect()
        except (mpd.ConnectionError, OSError) as e:
            logger.warning(f"Error while disconnecting: {e}")
        finally:
            self._connected = False

    def _drop_connection(self) -> None:
        """Release the socket after a transport error."""
        self._connected = False
        try:
            self.client.disconnect()
        except (mpd.ConnectionError, OSError) as e:
            logger.warning(f"Error while closing broken connection: {e}")

    @property
    def connected(self) -> bool:
        return self._connected

    def _call(self, command: Callable[..., Any], *args: Any) -> Any:
        """Run a python-mpd2 command, translating its errors."""
        if not self._connected:
            raise DaemonConnectionError("Not connected to MPD")
        try:
            return command(*args)
        except mpd.CommandError as e:
            raise DaemonCommandError(str(e)) from e
        except (mpd.ConnectionError, OSError) as e:
            self._drop_connection()
            raise DaemonConnectionError(str(e)) from e

    def status(self) -> PlaybackStatus:
        """Get current playback status."""
        return parse_status(self._call(self.client.status))

    def current_track(self) -> Optional[Track]:
        """Get the current track, or None when nothing is queued to play."""
        return parse_track(self._call(self.client.currentsong))

    def queue(self) -> list[Track]:
        """Get the play queue in order."""
        songs = self._call(self.client.playlistinfo)
        return [track for track in map(parse_track, songs) if track is not None]

    def playlists(self) -> list[Playlist]:
        """Get stored playlists."""
        return [parse_playlist(p) for p in self._call(self.client.listplaylists)]

    def toggle_pause(self) -> None:
        """Pause when playing, resume when paused, start when stopped."""
        state = self.status().state
        if state == "play":
            self._call(self.client.pause, 1)
        elif state == "pause":
            self._call(self.client.pause, 0)
        else:
            self._call(self.client.play)

    def set_volume(self, percent: int) -> None:
        """Set volume (0-100)."""
        if not 0 <= percent <= 100:
            raise ValueError("Volume must be between 0 and 100")
        self._call(self.client.setvol, percent)

    def switch_to(self, index: int) -> None:
        """Start playing the queue entry at ``index``."""
        self._call(self.client.play, index)
