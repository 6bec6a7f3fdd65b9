"""Key decoding and key-to-action dispatch."""

from enum import Enum
from typing import NamedTuple, Optional

from blessed.keyboard import Keystroke

from mpdash.config import KeysConfig

# Not remappable; checked independently of the binding table.
HELP_KEY = "?"

# blessed sequence names -> symbolic key names used in KeysConfig
_SEQUENCE_NAMES = {
    "KEY_BACKSPACE": "backspace",
    "KEY_ENTER": "enter",
    "KEY_LEFT": "left",
    "KEY_RIGHT": "right",
    "KEY_UP": "up",
    "KEY_DOWN": "down",
    "KEY_HOME": "home",
    "KEY_END": "end",
    "KEY_PGUP": "pageup",
    "KEY_PGDOWN": "pagedown",
    "KEY_TAB": "tab",
    "KEY_BTAB": "backtab",
    "KEY_DELETE": "delete",
    "KEY_INSERT": "insert",
    "KEY_ESCAPE": "esc",
}

# Control characters some terminals deliver without a sequence name
_CONTROL_CHARS = {
    "\t": "tab",
    "\n": "enter",
    "\r": "enter",
    "\x1b": "esc",
    "\x7f": "backspace",
}


class Action(Enum):
    QUIT = "quit"
    SWITCH_TAB = "switch_tab"
    TOGGLE_PAUSE = "toggle_pause"
    VOLUME_DOWN = "vol_down"
    VOLUME_UP = "vol_up"
    SELECT_NEXT = "queue_next"
    SELECT_PREVIOUS = "queue_prev"
    COMMIT_SELECTION = "switch_song"
    TOGGLE_HELP = "toggle_help"


# Help popup order and descriptions for the configurable actions
_DESCRIPTIONS = [
    (Action.QUIT, "Quit"),
    (Action.SWITCH_TAB, "Switch tab"),
    (Action.TOGGLE_PAUSE, "Toggle pause"),
    (Action.VOLUME_DOWN, "Volume down"),
    (Action.VOLUME_UP, "Volume up"),
    (Action.SELECT_NEXT, "Move next"),
    (Action.SELECT_PREVIOUS, "Move back"),
    (Action.COMMIT_SELECTION, "Switch to song under cursor"),
]


class HelpRow(NamedTuple):
    key: str
    description: str


class KeyBindingTable:
    """Immutable key -> action mapping built once at startup."""

    def __init__(self, keys: KeysConfig):
        bindings: dict[str, Action] = {}
        rows = []
        for action, description in _DESCRIPTIONS:
            key = getattr(keys, action.value)
            # First binding wins when two actions share a key
            bindings.setdefault(key, action)
            rows.append(HelpRow(key, description))
        rows.append(HelpRow(HELP_KEY, "Toggle this help"))
        self._bindings = bindings
        self._rows = tuple(rows)

    def lookup(self, key: str) -> Optional[Action]:
        return self._bindings.get(key)

    @property
    def help_rows(self) -> tuple[HelpRow, ...]:
        return self._rows


def dispatch(key: Optional[str], table: KeyBindingTable) -> Optional[Action]:
    """Map a decoded key to its bound action."""
    if key is None:
        return None
    return table.lookup(key)


def is_help_key(key: Optional[str]) -> bool:
    return key == HELP_KEY


def decode_keystroke(keystroke: Keystroke) -> Optional[str]:
    """Turn a blessed Keystroke into a symbolic key name.

    Returns None for an empty keystroke (poll timeout) or an unknown sequence.
    """
    if keystroke.is_sequence:
        if keystroke.name in _SEQUENCE_NAMES:
            return _SEQUENCE_NAMES[keystroke.name]
        text = str(keystroke)
        return _CONTROL_CHARS.get(text)
    text = str(keystroke)
    if not text:
        return None
    return _CONTROL_CHARS.get(text, text)
