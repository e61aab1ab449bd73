"""
Abstract input events consumed by the session engine.

The terminal layer translates raw key presses into these events so the
engine never depends on a particular terminal library.
"""

from dataclasses import dataclass
from enum import Enum


class Key(Enum):
    """Discrete keys understood by the engine."""

    CHAR = "char"
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"
    TAB = "tab"
    ENTER = "enter"
    ESCAPE = "escape"
    BACKSPACE = "backspace"
    PAGE_UP = "page_up"
    PAGE_DOWN = "page_down"
    HOME = "home"
    END = "end"
    QUIT = "quit"


@dataclass(frozen=True)
class InputEvent:
    """
    One input event.

    Attributes:
        key: Key kind.
        char: Printable character for Key.CHAR events, empty otherwise.
    """

    key: Key
    char: str = ""

    @classmethod
    def character(cls, char: str) -> "InputEvent":
        """Build a CHAR event for a single printable character."""
        if len(char) != 1:
            raise ValueError(f"Expected a single character, got {char!r}")
        return cls(Key.CHAR, char)

    def is_char(self, char: str | None = None) -> bool:
        """True for CHAR events, optionally matching a specific character."""
        if self.key is not Key.CHAR:
            return False
        return char is None or self.char == char


UP = InputEvent(Key.UP)
DOWN = InputEvent(Key.DOWN)
LEFT = InputEvent(Key.LEFT)
RIGHT = InputEvent(Key.RIGHT)
TAB = InputEvent(Key.TAB)
ENTER = InputEvent(Key.ENTER)
ESCAPE = InputEvent(Key.ESCAPE)
BACKSPACE = InputEvent(Key.BACKSPACE)
PAGE_UP = InputEvent(Key.PAGE_UP)
PAGE_DOWN = InputEvent(Key.PAGE_DOWN)
HOME = InputEvent(Key.HOME)
END = InputEvent(Key.END)
QUIT = InputEvent(Key.QUIT)


def text(value: str) -> list[InputEvent]:
    """Expand a string into CHAR events, one per character."""
    return [InputEvent.character(c) for c in value]
