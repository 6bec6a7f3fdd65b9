"""Terminal dashboard for the Music Player Daemon."""

from mpdash.mirror import PlaybackStateMirror
from mpdash.models import PlaybackStatus, Playlist, Track
from mpdash.mpd_client import DaemonClient, DaemonError
from mpdash.selection import QueueSelection

__all__ = [
    "DaemonClient",
    "DaemonError",
    "PlaybackStateMirror",
    "PlaybackStatus",
    "Playlist",
    "QueueSelection",
    "Track",
]
