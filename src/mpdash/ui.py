"""Dashboard rendering with blessed."""

import sys
from typing import Callable, Optional

from blessed import Terminal

from mpdash.config import ColumnConfig, Settings
from mpdash.mirror import MirrorView
from mpdash.models import PlaybackStatus, Track

_HEADERS = {
    "file": "File",
    "title": "Title",
    "duration": "Duration",
    "album": "Album",
    "artist": "Artist",
    "track": "Track",
}

# Now-playing label, volume line and progress bar
_FOOTER_HEIGHT = 3
# Tab bar, column header and the blank line below it
_TABLE_TOP = 3


def format_time(seconds: int) -> str:
    """Format seconds as ``m:ss``."""
    minutes, secs = divmod(max(0, int(seconds)), 60)
    return f"{minutes}:{secs:02d}"


def progress(status: PlaybackStatus) -> tuple[str, int]:
    """Return the progress label and percent for the current track."""
    if status.time is None:
        return "", 0
    elapsed, total = status.elapsed, status.total
    label = f"{format_time(elapsed)}/{format_time(total)}"
    if total <= 0:
        return label, 0
    return label, min(100, elapsed * 100 // total)


def column_cell(track: Track, kind: str) -> str:
    """Text for one queue table cell."""
    if kind == "file":
        return track.file
    if kind == "title":
        return track.title or ""
    if kind == "duration":
        seconds = track.duration_seconds
        return format_time(seconds) if seconds is not None else ""
    return track.tag(kind)


def now_playing_label(track: Optional[Track]) -> str:
    if track is None:
        return " - "
    return f"{track.artist} - {track.title or ''}"


def column_widths(columns: list[ColumnConfig], total_width: int) -> list[int]:
    """Convert percentage widths into character widths."""
    return [max(1, total_width * column.width // 100) for column in columns]


def compute_scroll_window(
    selected_idx: Optional[int], total: int, visible_rows: int
) -> tuple[int, int]:
    """Start and end indices of the visible rows, keeping the selection in view."""
    if total <= visible_rows:
        return 0, total
    if selected_idx is None or not 0 <= selected_idx < total:
        return 0, visible_rows
    start = max(0, selected_idx - visible_rows + 1)
    return start, min(total, start + visible_rows)


def popup_area(
    width_pct: int, height_pct: int, width: int, height: int
) -> tuple[int, int, int, int]:
    """Centred rectangle as (x, y, width, height)."""
    popup_w = width * width_pct // 100
    popup_h = height * height_pct // 100
    return (width - popup_w) // 2, (height - popup_h) // 2, popup_w, popup_h


def _fit(text: str, width: int) -> str:
    return text[:width].ljust(width)


class DashboardRenderer:
    """Paints one frame from a MirrorView and the UI state.

    Never touches the mirror itself, so it holds no lock while drawing.
    """

    def __init__(self, term: Terminal, settings: Settings, stream=None):
        self.term = term
        self.settings = settings
        self.stream = stream or sys.stdout
        self._drawn_rows: set[int] = set()
        styles = settings.styles
        self.style_tab = self._style(styles.tab_selected)
        self.style_normal = self._style(styles.normal)
        self.style_selected = self._style(styles.selected)
        self.style_playing = self._style(styles.playing)
        self.style_progress = self._style(styles.progress)
        self.style_header = self._style(styles.header)

    def _style(self, name: str) -> Callable[[str], str]:
        if name in ("", "normal"):
            return str
        return getattr(self.term, name)

    def _write_at(self, x: int, y: int, content: str) -> None:
        self.stream.write(self.term.move_xy(x, y) + self.term.clear_eol + content)
        self._drawn_rows.add(y)

    def _clear_undrawn(self) -> None:
        for y in range(self.term.height):
            if y not in self._drawn_rows:
                self.stream.write(self.term.move_xy(0, y) + self.term.clear_eol)

    def draw(self, view: MirrorView, state) -> None:
        # Rows are overwritten in place; a full clear every frame flickers
        self._drawn_rows = set()
        self._draw_tabs(state)
        if state.tabs.index == 0:
            self._draw_queue(view, state)
            self._draw_footer(view)
        else:
            self._draw_playlists(view)
        self._clear_undrawn()
        if state.show_help:
            self._draw_help(state)
        self.stream.flush()

    def _draw_tabs(self, state) -> None:
        parts = []
        for i, title in enumerate(state.tabs.titles):
            if i == state.tabs.index:
                parts.append(self.style_tab(title))
            else:
                parts.append(self.term.bright_black(title))
        self._write_at(0, 0, " | ".join(parts))

    def _draw_queue(self, view: MirrorView, state) -> None:
        columns = self.settings.columns
        widths = column_widths(columns, self.term.width)
        header = " ".join(
            _fit(_HEADERS[c.kind], w) for c, w in zip(columns, widths)
        )
        self._write_at(0, 1, self.style_header(header))

        visible_rows = max(0, self.term.height - _TABLE_TOP - _FOOTER_HEIGHT)
        selected = state.selection.selected
        start, end = compute_scroll_window(selected, len(view.queue), visible_rows)
        playing = view.status.song

        for row, index in enumerate(range(start, end)):
            track = view.queue[index]
            text = " ".join(
                _fit(column_cell(track, c.kind), w) for c, w in zip(columns, widths)
            )
            if index == selected:
                text = self.style_selected(text)
            elif index == playing:
                text = self.style_playing(text)
            else:
                text = self.style_normal(text)
            self._write_at(0, _TABLE_TOP + row, text)

    def _draw_footer(self, view: MirrorView) -> None:
        width = self.term.width
        y = self.term.height - _FOOTER_HEIGHT
        self._write_at(0, y, now_playing_label(view.current_track))
        self._write_at(
            0, y + 1, self.term.white(f"Volume: {view.status.volume}%")
        )

        label, percent = progress(view.status)
        bar = label.center(width)
        filled = width * percent // 100
        self._write_at(
            0,
            y + 2,
            self.term.reverse(self.style_progress(bar[:filled]))
            + self.style_progress(bar[filled:]),
        )

    def _draw_playlists(self, view: MirrorView) -> None:
        visible_rows = max(0, self.term.height - 2)
        for row, playlist in enumerate(view.playlists[:visible_rows]):
            self._write_at(0, 2 + row, self.style_normal(playlist.name))

    def _draw_help(self, state) -> None:
        ui = self.settings.ui
        x, y, w, h = popup_area(
            ui.help_width_pct, ui.help_height_pct, self.term.width, self.term.height
        )
        if w < 4 or h < 3:
            return
        inner = w - 2
        key_width = max(1, inner * 20 // 100)
        move = self.term.move_xy
        self.stream.write(move(x, y) + "┌" + _fit(" Help ", inner).replace(" ", "─") + "┐")
        rows = state.bindings.help_rows
        for i in range(h - 2):
            if i < len(rows):
                key, description = rows[i]
                text = _fit(key, key_width) + _fit(description, inner - key_width)
            else:
                text = " " * inner
            self.stream.write(move(x, y + 1 + i) + "│" + text + "│")
        self.stream.write(move(x, y + h - 1) + "└" + "─" * inner + "┘")
