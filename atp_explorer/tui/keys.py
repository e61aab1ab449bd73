"""
Translation of Textual key names into engine input events.
"""

from typing import Optional

from atp_explorer.events import InputEvent, Key

KEY_MAP = {
    "up": Key.UP,
    "down": Key.DOWN,
    "left": Key.LEFT,
    "right": Key.RIGHT,
    "tab": Key.TAB,
    "enter": Key.ENTER,
    "escape": Key.ESCAPE,
    "backspace": Key.BACKSPACE,
    "pageup": Key.PAGE_UP,
    "pagedown": Key.PAGE_DOWN,
    "home": Key.HOME,
    "end": Key.END,
    "ctrl+c": Key.QUIT,
    "ctrl+q": Key.QUIT,
}


def translate_key(key: str, character: Optional[str] = None) -> Optional[InputEvent]:
    """
    Map a Textual key to an InputEvent.

    Args:
        key: Textual key name (e.g. "up", "ctrl+c", "a").
        character: Printable character carried by the key event, if any.

    Returns:
        InputEvent, or None for keys the engine ignores.
    """
    mapped = KEY_MAP.get(key)
    if mapped is not None:
        return InputEvent(mapped)
    if character and len(character) == 1 and character.isprintable():
        return InputEvent.character(character)
    return None
