"""Queue cursor and tab index."""

from typing import Optional, Sequence

from loguru import logger

from mpdash.mirror import PlaybackStateMirror


class QueueSelection:
    """Highlighted row in the queue view.

    Independent of the daemon's playing position. ``bound`` is the length of
    the queue snapshot the index refers to and must be updated with
    ``rebind`` whenever the snapshot changes.
    """

    def __init__(self, bound: int = 0, selected: Optional[int] = None):
        self.bound = bound
        self.selected: Optional[int] = None
        if selected is not None:
            self.set(selected)

    def next(self) -> None:
        if self.bound == 0:
            return
        if self.selected is None:
            self.selected = 0
        else:
            self.selected = (self.selected + 1) % self.bound

    def previous(self) -> None:
        if self.bound == 0:
            return
        if self.selected is None:
            self.selected = 0
        else:
            self.selected = (self.selected + self.bound - 1) % self.bound

    def set(self, index: int) -> None:
        """Select ``index``, clamped into the current bound."""
        if self.bound == 0:
            self.selected = None
        else:
            self.selected = max(0, min(index, self.bound - 1))

    def rebind(self, new_bound: int) -> None:
        """Adopt a new queue length, clamping the selection into it."""
        self.bound = new_bound
        if new_bound == 0:
            self.selected = None
        elif self.selected is not None and self.selected >= new_bound:
            self.selected = new_bound - 1

    def commit(self, mirror: PlaybackStateMirror) -> bool:
        """Switch playback to the selected track."""
        if self.selected is None:
            logger.warning("No track selected")
            return False
        return mirror.issue_switch(self.selected)


class TabState:
    """Index into a fixed list of tab titles."""

    def __init__(self, titles: Sequence[str] = ("Queue", "Browse")):
        if not titles:
            raise ValueError("At least one tab is required")
        self.titles = tuple(titles)
        self.index = 0

    def next(self) -> None:
        self.index = (self.index + 1) % len(self.titles)

    @property
    def current(self) -> str:
        return self.titles[self.index]
