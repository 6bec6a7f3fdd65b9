"""Pydantic models for MPD data structures."""

from typing import Any, Mapping, Optional

from pydantic import BaseModel

# Keys returned by currentsong/playlistinfo that are not metadata tags.
_NON_TAG_KEYS = frozenset(
    {"file", "title", "duration", "time", "pos", "id", "last-modified", "format", "prio"}
)


def _parse_int(value: Any, default: Optional[int] = None) -> Optional[int]:
    """Parse a protocol value to int, handling floats."""
    if value is None or value == "":
        return default
    try:
        return int(float(value))
    except (ValueError, TypeError):
        return default


def _parse_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (ValueError, TypeError):
        return None


def _first(value: Any) -> Any:
    # python-mpd2 returns a list when a key is repeated
    if isinstance(value, list):
        return value[0] if value else None
    return value


class PlaybackStatus(BaseModel):
    """Player status as reported by ``status``."""

    # Playback state: "play", "pause" or "stop"
    state: str = "stop"

    # Volume 0-100, -1 when the daemon has no mixer
    volume: int = -1

    # (elapsed, total) in seconds for the current track
    time: Optional[tuple[float, float]] = None

    # Queue position of the current track
    song: Optional[int] = None

    queue_len: int = 0

    model_config = {"frozen": True}

    @property
    def is_playing(self) -> bool:
        return self.state == "play"

    @property
    def is_paused(self) -> bool:
        return self.state == "pause"

    @property
    def is_stopped(self) -> bool:
        return self.state == "stop"

    @property
    def elapsed(self) -> int:
        return int(self.time[0]) if self.time else 0

    @property
    def total(self) -> int:
        return int(self.time[1]) if self.time else 0


class Track(BaseModel):
    """A song in the queue or the current song."""

    file: str
    title: Optional[str] = None
    duration: Optional[float] = None
    tags: dict[str, str] = {}
    pos: Optional[int] = None

    model_config = {"frozen": True}

    def tag(self, name: str) -> str:
        """Return a tag value by case-insensitive name, or an empty string."""
        return self.tags.get(name.lower(), "")

    @property
    def artist(self) -> str:
        return self.tag("artist")

    @property
    def duration_seconds(self) -> Optional[int]:
        return int(self.duration) if self.duration is not None else None


class Playlist(BaseModel):
    """A stored playlist."""

    name: str
    last_modified: Optional[str] = None

    model_config = {"frozen": True}


def parse_status(data: Mapping[str, Any]) -> PlaybackStatus:
    """Build a PlaybackStatus from a ``status`` response dict."""
    time: Optional[tuple[float, float]] = None
    elapsed = _parse_float(data.get("elapsed"))
    total = _parse_float(data.get("duration"))
    if (elapsed is None or total is None) and data.get("time"):
        # Older daemons only send "time" as "elapsed:total"
        parts = str(data["time"]).split(":")
        if len(parts) == 2:
            elapsed = _parse_float(parts[0])
            total = _parse_float(parts[1])
    if elapsed is not None and total is not None:
        time = (elapsed, total)

    return PlaybackStatus(
        state=data.get("state", "stop"),
        volume=_parse_int(data.get("volume"), -1),
        time=time,
        song=_parse_int(data.get("song")),
        queue_len=_parse_int(data.get("playlistlength"), 0),
    )


def parse_track(data: Mapping[str, Any]) -> Optional[Track]:
    """Build a Track from a ``currentsong``/``playlistinfo`` entry.

    Returns None for an empty response (nothing is current).
    """
    if not data or not data.get("file"):
        return None

    duration = _parse_float(_first(data.get("duration")))
    if duration is None:
        duration = _parse_float(_first(data.get("time")))

    tags = {}
    for key, value in data.items():
        if key.lower() in _NON_TAG_KEYS:
            continue
        if isinstance(value, list):
            value = ", ".join(str(v) for v in value)
        tags[key.lower()] = str(value)

    return Track(
        file=_first(data["file"]),
        title=_first(data.get("title")),
        duration=duration,
        tags=tags,
        pos=_parse_int(_first(data.get("pos"))),
    )


def parse_playlist(data: Mapping[str, Any]) -> Playlist:
    """Build a Playlist from a ``listplaylists`` entry."""
    return Playlist(
        name=data["playlist"],
        last_modified=data.get("last-modified"),
    )
