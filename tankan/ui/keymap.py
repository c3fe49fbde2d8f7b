"""Translate Qt key events into layout key ids and track held modifiers.

Qt reports the character a key would type on the host's US layout rather than
the physical key, so both the plain and the shifted symbol of every key map
back to the same ``KeyboardEvent.code``-style id.
"""

from __future__ import annotations

import logging
from typing import Optional

from PySide6.QtCore import Qt
from PySide6.QtGui import QKeyEvent

from tankan.core.keyboard import MODIFIER_KEYS

logger = logging.getLogger(__name__)

K = Qt.Key

_SYMBOL_KEYS = {
    K.Key_QuoteLeft: "Backquote",
    K.Key_AsciiTilde: "Backquote",
    K.Key_Exclam: "Digit1",
    K.Key_At: "Digit2",
    K.Key_NumberSign: "Digit3",
    K.Key_Dollar: "Digit4",
    K.Key_Percent: "Digit5",
    K.Key_AsciiCircum: "Digit6",
    K.Key_Ampersand: "Digit7",
    K.Key_Asterisk: "Digit8",
    K.Key_ParenLeft: "Digit9",
    K.Key_ParenRight: "Digit0",
    K.Key_Minus: "Minus",
    K.Key_Underscore: "Minus",
    K.Key_Equal: "Equal",
    K.Key_Plus: "Equal",
    K.Key_BracketLeft: "BracketLeft",
    K.Key_BraceLeft: "BracketLeft",
    K.Key_BracketRight: "BracketRight",
    K.Key_BraceRight: "BracketRight",
    K.Key_Backslash: "Backslash",
    K.Key_Bar: "Backslash",
    K.Key_Semicolon: "Semicolon",
    K.Key_Colon: "Semicolon",
    K.Key_Apostrophe: "Quote",
    K.Key_QuoteDbl: "Quote",
    K.Key_Comma: "Comma",
    K.Key_Less: "Comma",
    K.Key_Period: "Period",
    K.Key_Greater: "Period",
    K.Key_Slash: "Slash",
    K.Key_Question: "Slash",
    K.Key_Space: "Space",
}

_NAMED_KEYS = {
    K.Key_Backspace: "Backspace",
    K.Key_Return: "Enter",
    K.Key_Enter: "NumpadEnter",
    K.Key_Tab: "Tab",
    K.Key_Escape: "Escape",
    K.Key_Up: "ArrowUp",
    K.Key_Down: "ArrowDown",
    K.Key_Left: "ArrowLeft",
    K.Key_Right: "ArrowRight",
    K.Key_Home: "Home",
    K.Key_End: "End",
    K.Key_PageUp: "PageUp",
    K.Key_PageDown: "PageDown",
    K.Key_Insert: "Insert",
    K.Key_Delete: "Delete",
    K.Key_Menu: "ContextMenu",
    K.Key_Print: "PrintScreen",
    K.Key_ScrollLock: "ScrollLock",
    K.Key_Pause: "Pause",
    K.Key_NumLock: "NumLock",
    K.Key_CapsLock: "CapsLock",
    K.Key_AltGr: "AltGraph",
}

# Native scan codes of the right-hand Shift and Alt (X11, Windows).
_RIGHT_SHIFT_SCANCODES = frozenset({62, 54})
_RIGHT_ALT_SCANCODES = frozenset({108, 312})


def _build_key_table() -> dict[int, str]:
    table: dict[int, str] = {}
    for offset in range(26):
        letter = chr(ord("A") + offset)
        table[int(getattr(K, f"Key_{letter}"))] = f"Key{letter}"
    for digit in range(10):
        table[int(getattr(K, f"Key_{digit}"))] = f"Digit{digit}"
    for number in range(1, 13):
        table[int(getattr(K, f"Key_F{number}"))] = f"F{number}"
    for qt_key, key_id in {**_SYMBOL_KEYS, **_NAMED_KEYS}.items():
        table[int(qt_key)] = key_id
    return table


KEY_TABLE = _build_key_table()


def key_id_for(qt_key: int, scan_code: int = 0) -> Optional[str]:
    """Layout key id for a ``Qt.Key`` value, or ``None`` when it has none."""
    qt_key = int(qt_key)
    if qt_key == int(K.Key_Shift):
        return "ShiftRight" if scan_code in _RIGHT_SHIFT_SCANCODES else "ShiftLeft"
    if qt_key == int(K.Key_Alt):
        return "AltRight" if scan_code in _RIGHT_ALT_SCANCODES else "AltLeft"
    if qt_key == int(K.Key_Control):
        return "ControlLeft"
    if qt_key == int(K.Key_Meta):
        return "MetaLeft"
    return KEY_TABLE.get(qt_key)


def key_id_from_event(event: QKeyEvent) -> Optional[str]:
    key_id = key_id_for(event.key(), event.nativeScanCode())
    if key_id is None:
        logger.debug("No key id for Qt key %s", event.key())
    return key_id


class HeldKeys:
    """Set of currently held modifier keys, fed from press/release events."""

    MODIFIERS = MODIFIER_KEYS - {"CapsLock"}

    def __init__(self) -> None:
        self._held: set[str] = set()

    @property
    def held(self) -> frozenset[str]:
        return frozenset(self._held)

    def press(self, key_id: str) -> None:
        if key_id in self.MODIFIERS:
            self._held.add(key_id)

    def release(self, key_id: str) -> None:
        self._held.discard(key_id)

    def sync(self, shift_down: bool) -> None:
        """Drop a stale Shift when the event's modifier flags say it is up."""
        if not shift_down:
            self._held.difference_update({"ShiftLeft", "ShiftRight"})

    def clear(self) -> None:
        self._held.clear()
