"""Configuration management for the MPD dashboard."""

from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, field_validator
from pydantic_settings import BaseSettings

# Symbolic key names understood by the input decoder. Single printable
# characters are accepted as well.
KEY_NAMES = frozenset(
    {
        "backspace",
        "enter",
        "left",
        "right",
        "up",
        "down",
        "home",
        "end",
        "pageup",
        "pagedown",
        "tab",
        "backtab",
        "delete",
        "insert",
        "esc",
    }
)


class MPDConfig(BaseModel):
    """MPD connection settings."""

    host: str = "127.0.0.1"
    port: int = 6600
    password: Optional[str] = None
    timeout: int = 10


class UIConfig(BaseModel):
    """Dashboard behaviour."""

    tick_rate_ms: int = 250
    refresh_mode: Literal["tick", "thread"] = "tick"
    refresh_interval_ms: int = 200
    volume_step: int = 5
    tab_titles: list[str] = ["Queue", "Browse"]
    help_width_pct: int = 40
    help_height_pct: int = 40


class KeysConfig(BaseModel):
    """Key bindings. Values are symbolic key names or single characters."""

    quit: str = "q"
    switch_tab: str = "tab"
    toggle_pause: str = "p"
    vol_down: str = "left"
    vol_up: str = "right"
    queue_next: str = "j"
    queue_prev: str = "k"
    switch_song: str = "enter"

    @field_validator("*")
    @classmethod
    def _known_key(cls, value: str) -> str:
        if len(value) == 1 or value in KEY_NAMES:
            return value
        raise ValueError(f"Unknown key name: {value!r}")


class StylesConfig(BaseModel):
    """blessed formatting names, e.g. ``black_on_magenta``."""

    tab_selected: str = "cyan"
    normal: str = "normal"
    selected: str = "black_on_magenta"
    playing: str = "cyan_on_black"
    progress: str = "bold_magenta_on_black"
    header: str = "cyan"


class ColumnConfig(BaseModel):
    """One queue table column and its width in percent."""

    kind: Literal["file", "title", "duration", "album", "artist", "track"]
    width: int


def _default_columns() -> list[ColumnConfig]:
    return [
        ColumnConfig(kind="artist", width=20),
        ColumnConfig(kind="track", width=5),
        ColumnConfig(kind="title", width=30),
        ColumnConfig(kind="album", width=30),
        ColumnConfig(kind="duration", width=5),
    ]


class LogConfig(BaseModel):
    """Log file settings."""

    file: Path = Path.home() / ".cache" / "mpdash" / "mpdash.log"
    level: str = "INFO"


class Settings(BaseSettings):
    """Application settings loaded from the environment."""

    mpd: MPDConfig = MPDConfig()
    ui: UIConfig = UIConfig()
    keys: KeysConfig = KeysConfig()
    styles: StylesConfig = StylesConfig()
    columns: list[ColumnConfig] = _default_columns()
    log: LogConfig = LogConfig()

    model_config = {
        "env_prefix": "MPDASH_",
        "env_nested_delimiter": "__",
    }


def load_settings() -> Settings:
    """Load settings from environment variables.

    Environment variable examples:
        MPDASH_MPD__HOST=musicbox.local
        MPDASH_UI__REFRESH_MODE=thread
        MPDASH_KEYS__QUIT=esc
    """
    return Settings()


# Default settings instance
settings = load_settings()
