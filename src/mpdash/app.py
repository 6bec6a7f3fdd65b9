"""Interactive session: action handling, input polling and the refresh loop."""

import threading
import time
from typing import Callable, Optional, Protocol

from blessed import Terminal
from loguru import logger

from mpdash.actions import (
    Action,
    KeyBindingTable,
    decode_keystroke,
    dispatch,
    is_help_key,
)
from mpdash.mirror import MirrorView, PlaybackStateMirror
from mpdash.mpd_client import DaemonError
from mpdash.selection import QueueSelection, TabState


class AppState:
    """UI-side state: tabs, queue cursor and the help overlay flag."""

    def __init__(
        self,
        bindings: KeyBindingTable,
        tab_titles: tuple[str, ...] = ("Queue", "Browse"),
        volume_step: int = 5,
    ):
        self.bindings = bindings
        self.tabs = TabState(tab_titles)
        self.selection = QueueSelection()
        self.show_help = False
        self.volume_step = volume_step

    def attach(self, mirror: PlaybackStateMirror) -> None:
        """Bind the cursor to the mirror's queue, starting on the playing track."""
        with mirror.lock:
            self.selection.rebind(len(mirror.queue()))
            playing = mirror.current_playing_index()
        self.selection.set(playing if playing is not None else 0)

    def reconcile(self, mirror: PlaybackStateMirror) -> None:
        """Clamp the cursor to the length of the current queue snapshot."""
        with mirror.lock:
            bound = len(mirror.queue())
        if bound != self.selection.bound:
            self.selection.rebind(bound)

    def rebind_to(self, view: MirrorView) -> None:
        """Clamp the cursor to the queue of a frame snapshot."""
        if len(view.queue) != self.selection.bound:
            self.selection.rebind(len(view.queue))

    def apply(self, action: Action, mirror: PlaybackStateMirror) -> bool:
        """Apply an action. Returns False when the session should end."""
        if action is Action.QUIT:
            return False
        if action is Action.SWITCH_TAB:
            self.tabs.next()
        elif action is Action.TOGGLE_PAUSE:
            mirror.issue_toggle_pause()
        elif action is Action.VOLUME_DOWN:
            mirror.issue_volume(-self.volume_step)
        elif action is Action.VOLUME_UP:
            mirror.issue_volume(self.volume_step)
        elif action is Action.SELECT_NEXT:
            self.selection.next()
        elif action is Action.SELECT_PREVIOUS:
            self.selection.previous()
        elif action is Action.COMMIT_SELECTION:
            self.reconcile(mirror)
            self.selection.commit(mirror)
        elif action is Action.TOGGLE_HELP:
            self.show_help = not self.show_help
        return True

    def handle_key(self, key: Optional[str], mirror: PlaybackStateMirror) -> bool:
        """Dispatch a decoded key. Returns False when the session should end."""
        if is_help_key(key):
            self.apply(Action.TOGGLE_HELP, mirror)
        action = dispatch(key, self.bindings)
        if action is None or action is Action.TOGGLE_HELP:
            return True
        return self.apply(action, mirror)


class InputSource(Protocol):
    def poll(self, timeout: float) -> Optional[str]: ...


class Renderer(Protocol):
    def draw(self, view: MirrorView, state: AppState) -> None: ...


class TerminalInput:
    """Reads keys from a blessed terminal in cbreak mode."""

    def __init__(self, term: Terminal):
        self.term = term

    def poll(self, timeout: float) -> Optional[str]:
        """Wait up to ``timeout`` seconds for a key; None on timeout."""
        return decode_keystroke(self.term.inkey(timeout=timeout))


class SyncLoop:
    """Single-threaded loop interleaving input polling and periodic refresh."""

    def __init__(
        self,
        mirror: PlaybackStateMirror,
        state: AppState,
        input_source: InputSource,
        renderer: Renderer,
        tick_rate: float = 0.25,
        refresh_on_tick: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.mirror = mirror
        self.state = state
        self.input_source = input_source
        self.renderer = renderer
        self.tick_rate = tick_rate
        self.refresh_on_tick = refresh_on_tick
        self.clock = clock

    def _refresh(self) -> None:
        try:
            self.mirror.refresh()
        except DaemonError as e:
            logger.warning(f"Refresh failed: {e}")

    def step(self, last_tick: float) -> tuple[bool, float]:
        """Run one iteration. Returns (keep_running, last_tick)."""
        view = self.mirror.snapshot()
        # Bound and rows must come from the same snapshot
        self.state.rebind_to(view)
        self.renderer.draw(view, self.state)

        timeout = max(0.0, self.tick_rate - (self.clock() - last_tick))
        key = self.input_source.poll(timeout)
        if key is not None and not self.state.handle_key(key, self.mirror):
            return False, last_tick

        if self.clock() - last_tick >= self.tick_rate:
            if self.refresh_on_tick:
                self._refresh()
            last_tick = self.clock()
        return True, last_tick

    def run(self) -> None:
        """Loop until a quit key is pressed. Input errors propagate."""
        last_tick = self.clock()
        running = True
        while running:
            running, last_tick = self.step(last_tick)
        logger.info("Quit requested")


class BackgroundRefresher(threading.Thread):
    """Refreshes the mirror on a fixed interval from a separate thread."""

    def __init__(self, mirror: PlaybackStateMirror, interval: float = 0.2):
        super().__init__(name="mpdash-refresh", daemon=True)
        self.mirror = mirror
        self.interval = interval
        self._stop_event = threading.Event()

    def run(self) -> None:
        logger.debug(f"Background refresh every {self.interval}s")
        while not self._stop_event.is_set():
            try:
                self.mirror.refresh()
            except DaemonError as e:
                logger.warning(f"Background refresh failed: {e}")
            self._stop_event.wait(self.interval)

    def stop(self) -> None:
        self._stop_event.set()
